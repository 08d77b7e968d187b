import os
import tempfile

# Settings are read once at import time, so the test environment has to be in
# place before anything under ``app`` is imported.
_media_dir = tempfile.mkdtemp(prefix="lawfirm-media-")
_public_dir = tempfile.mkdtemp(prefix="lawfirm-public-")

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["MEDIA_ROOT"] = _media_dir
os.environ["PUBLIC_DIR"] = _public_dir
os.environ["REPORT_FONT_PATH"] = os.path.join(_public_dir, "missing-font.ttf")
os.environ["LOG_LEVEL"] = "WARNING"
