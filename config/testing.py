import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "internship_portal_test"),
}

MINIO_CONFIG = {
    "endpoint": os.getenv("MINIO_ENDPOINT", "localhost:9000"),
    "access_key": os.getenv("MINIO_ACCESS_KEY", "minioadmin"),
    "secret_key": os.getenv("MINIO_SECRET_KEY", "minioadmin"),
    "secure": False,
    "bucket": os.getenv("MINIO_BUCKET", "internship-portal-test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

LOG_LEVEL = "WARNING"
LOG_DIR = ""

RESET_TOKEN_MAX_AGE = 3600

FEDERATED_SECRET = "test-federated-secret"
FEDERATED_MAX_AGE = 300
