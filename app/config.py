from decouple import config, Csv

DATABASE_URL = config("DATABASE_URL", default="sqlite:///./lawfirm.db")

# JWT
SECRET_KEY = config("JWT_SECRET_KEY", default="change-me-in-production")
ALGORITHM = config("JWT_ALGORITHM", default="HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=60, cast=int)

# Password reset codes
OTP_EXPIRE_MINUTES = config("OTP_EXPIRE_MINUTES", default=10, cast=int)

# Admin activity log
ACTIVITY_LOG_RETENTION = config("ACTIVITY_LOG_RETENTION", default=6, cast=int)

# Media storage
MEDIA_ROOT = config("MEDIA_ROOT", default="uploads")
MEDIA_BASE_URL = config("MEDIA_BASE_URL", default="/uploads")
SIGNED_URL_EXPIRE_SECONDS = config("SIGNED_URL_EXPIRE_SECONDS", default=3600, cast=int)
PUBLIC_DIR = config("PUBLIC_DIR", default="public")

# PDF reports
REPORT_FONT_PATH = config("REPORT_FONT_PATH", default="public/fonts/Amiri-Regular.ttf")

# SMTP
SMTP_HOST = config("SMTP_HOST", default="")
SMTP_PORT = config("SMTP_PORT", default=587, cast=int)
SMTP_USERNAME = config("SMTP_USERNAME", default="")
SMTP_PASSWORD = config("SMTP_PASSWORD", default="")
SMTP_FROM = config("SMTP_FROM", default="")
SMTP_TLS = config("SMTP_TLS", default=True, cast=bool)

CORS_ORIGINS = config(
    "CORS_ORIGINS",
    default="http://localhost:3000,http://localhost:5173",
    cast=Csv(),
)

LOG_LEVEL = config("LOG_LEVEL", default="INFO")
