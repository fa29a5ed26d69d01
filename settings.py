"""docstring settings.py: runtime configuration for the gallery admin server
and the image pipeline. Every value can be overridden from the environment."""
import os


def str2bool(value, default=False):
    """converts diverse string values into boolean True or False,
       falls back to default for anything unrecognised."""
    true_set = {'yes', 'true', 't', 'y', '1', 'on'}
    false_set = {'no', 'false', 'f', 'n', '0', 'off'}

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        value = value.strip().lower()
        if value in true_set:
            return True
        if value in false_set:
            return False
    return default


BASE_DIR = os.getenv('GALLERY_BASE_DIR', os.getcwd())

# images/<basename>.{jpg,png} are sources, images/webp/<basename>.webp derivatives
IMAGES_DIR = os.getenv('GALLERY_IMAGES_DIR', os.path.join(BASE_DIR, 'public', 'images'))
WEBP_DIRNAME = os.getenv('GALLERY_WEBP_DIRNAME', 'webp')

DATABASE_PATH = os.getenv('GALLERY_DATABASE', os.path.join(BASE_DIR, 'data', 'commissions.db'))
BUSY_TIMEOUT_MS = int(os.getenv('GALLERY_BUSY_TIMEOUT_MS', '5000'))

# Writable actions are a development-only feature.
ALLOW_WRITES = str2bool(os.getenv('GALLERY_ALLOW_WRITES'), default=True)

PIPELINE_BACKGROUND = str2bool(os.getenv('GALLERY_PIPELINE_BACKGROUND'), default=False)
PIPELINE_WORKERS = int(os.getenv('GALLERY_PIPELINE_WORKERS', '0')) or None
WEBP_QUALITY = int(os.getenv('GALLERY_WEBP_QUALITY', '80'))
JPEG_QUALITY = int(os.getenv('GALLERY_JPEG_QUALITY', '95'))

LOG_LEVEL = os.getenv('GALLERY_LOG_LEVEL', 'INFO')
DEBUG_APP = str2bool(os.getenv('GALLERY_DEBUG'), default=False)

HOST = os.getenv('GALLERY_HOST', '127.0.0.1')
PORT = int(os.getenv('GALLERY_PORT', '8080'))
SERVER = os.getenv('GALLERY_SERVER', 'wsgiref')
