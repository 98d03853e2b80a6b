"""Offer and joining letter text for approved applications.

Only the wording lives here; turning the lines into a PDF is left to the
client.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import List

from ..core.enums import LetterKind, ReviewStatus
from ..core.exceptions import ValidationError
from .model import Application

DEFAULT_COMPANY = "Our Company"


@dataclass(frozen=True)
class Letter:
    title: str
    filename: str
    lines: List[str]

    def as_text(self) -> str:
        return "\n".join([self.title, ""] + self.lines) + "\n"


def _fmt(d: date) -> str:
    return d.strftime("%d %B %Y")


def _slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip()) or "candidate"


def offer_letter(application: Application, *, issued_on: date) -> Letter:
    company = application.company_name or DEFAULT_COMPANY
    name = application.applicant_name or "Candidate"
    lines = [
        f"Date: {_fmt(issued_on)}",
        "",
        f"Dear {name},",
        "",
        "We are pleased to offer you an internship position with our organization.",
        "",
        "Position Details:",
        f"Position: {application.internship_title}",
        f"Company: {company}",
    ]
    if application.start_date:
        lines.append(f"Start Date: {_fmt(application.start_date)}")
    lines += [
        "",
        "Congratulations and welcome to the team!",
        "",
        "Best regards,",
        "HR Department",
        company,
    ]
    return Letter("INTERNSHIP OFFER LETTER", f"offer-letter-{_slug(name)}.txt", lines)


def joining_letter(application: Application, *, issued_on: date) -> Letter:
    company = application.company_name or DEFAULT_COMPANY
    name = application.applicant_name or "Candidate"
    lines = [
        f"Date: {_fmt(issued_on)}",
        "",
        f"To: {name}",
        "",
        f"We are pleased to confirm your joining as an intern for the role of {application.internship_title}.",
    ]
    if application.start_date:
        lines.append(f"Please report on {_fmt(application.start_date)} to begin your internship.")
    lines += [
        "Kindly bring a valid ID and any required documents as communicated.",
        "",
        "Welcome aboard!",
        "",
        "Regards,",
        "HR Department",
        company,
    ]
    return Letter("INTERNSHIP JOINING LETTER", f"joining-letter-{_slug(name)}.txt", lines)


def build_letter(application: Application, kind: LetterKind, *, issued_on: date) -> Letter:
    if application.status != ReviewStatus.APPROVED:
        raise ValidationError("Letters are only available for approved applications")
    if LetterKind(kind) == LetterKind.OFFER:
        return offer_letter(application, issued_on=issued_on)
    return joining_letter(application, issued_on=issued_on)
