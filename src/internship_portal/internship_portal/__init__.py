"""Internship Portal package.

Organized by feature modules (users, internships, applications, tasks,
attendance) with a thin Flask controller layer on top of service/repository
layers. Status changes for applications, task updates and attendance all go
through :mod:`core.lifecycle`.
"""
