"""
Default configuration for batch superpixel segmentation.
"""

import multiprocessing

# Input discovery
IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')
RECURSIVE_SEARCH = False

# Output paths ("" disables the corresponding output)
OUTPUT_DIR = ''
VISUALIZATION_DIR = ''
SUMMARY_DIR = ''
OUTPUT_PREFIX = ''
RUNTIME_LOG_NAME = 'runtime.txt'

# Label file format
CSV_DELIMITER = ','
LABEL_EXTENSION = 'csv'
VISUALIZATION_EXTENSION = 'png'

# Contour overlay colour (BGR, as written by OpenCV)
CONTOUR_COLOR = (0, 0, 204)

# Segmentation parameters shared by all methods
DEFAULT_METHOD = 'hhts'
DEFAULT_SPLIT_THRESHOLD = 0.0
DEFAULT_BINS = 32
DEFAULT_MIN_SEGMENT_SIZE = 64

# Per-method parameters
SUPERPIXEL_CONFIG = {
    'hhts': {
        'enable': True,
        'blur_kernel_size': 5,  # Gaussian kernel applied to every channel when blur is on
        'blur_sigma': 0.0,  # 0 lets OpenCV derive sigma from the kernel size
    },
    'slic': {
        'enable': True,
        'compactness': 0.1,  # Features are scaled to [0, 1]
        'max_num_iter': 10,
        'max_size_factor': 3.0,
    },
}

# Batch execution
BATCH_CONFIG = {
    'workers': 1,
    'max_workers': max(1, multiprocessing.cpu_count() - 1),  # Leave one CPU free
    'strict_writes': False,  # True turns a failed artifact write into a batch abort
}

# Logging
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
CONSOLE_LOG_FORMAT = "<level>{level: <8}</level> | {message}"
