import yaml
from pathlib import Path
from typing import Dict, List
import os

PACKAGE_ROOT = Path(__file__).resolve().parent.parent
CONFIG_FILE = Path(__file__).resolve().parent / "config.yml"

with open(CONFIG_FILE, "r", encoding="utf-8") as f:
    config = yaml.safe_load(f)

# Отсутствие весов не проверяется при импорте: это ModelUnavailable при первом снимке
WEIGHT_PATH = Path(os.getenv('FLOWER_SNAP_WEIGHTS') or PACKAGE_ROOT / config["path"]["weights_path"])
CLASS_NAMES_PATH = Path(PACKAGE_ROOT / config["path"]["class_names_path"])

# Параметры загружаемых изображений
MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_FORMATS: Dict[str, List[str]] = {
    'image/jpeg': ['.jpg', '.jpeg'],
    'image/png': ['.png'],
    'image/webp': ['.webp'],
    'image/heic': ['.heic', '.heif']
}

# Параметры модели
MODEL_ARCHITECTURE = config["model"]["architecture"]
MODEL_INPUT_SIZE = config["model"]["input_size"]  # Размер входа для EfficientNetB2
MAX_IMAGE_SIZE = config["model"]["max_image_size"]  # Максимальный размер исходного изображения
TOP_K = config["model"]["top_k"]  # Количество возвращаемых предсказаний
DEVICE = os.getenv('FLOWER_SNAP_DEVICE')

# Параметры Wikipedia API
WIKIPEDIA_URL = config["wikipedia"]["url"]
THUMB_SIZE = config["wikipedia"]["thumb_size"]
REQUEST_TIMEOUT = config["wikipedia"]["timeout"]
USER_AGENT = config["wikipedia"]["user_agent"]

IMAGE_CACHE_SIZE = config["images"]["cache_size"]

# Параметры логирования
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        },
        'detailed': {
            'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s'
        },
    },
    'handlers': {
        'default': {
            'level': LOG_LEVEL,
            'formatter': 'standard',
            'class': 'logging.StreamHandler',
        },
        'error_file': {
            'level': 'ERROR',
            'formatter': 'detailed',
            'class': 'logging.FileHandler',
            'filename': 'error.log',
            'mode': 'a',
            'delay': True,
        },
    },
    'loggers': {
        '': {  # root logger
            'handlers': ['default', 'error_file'],
            'level': LOG_LEVEL,
            'propagate': True
        }
    }
}
