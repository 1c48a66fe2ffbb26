"""
Visualization of superpixel label maps.
"""

import cv2
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from skimage.segmentation import find_boundaries

from configs.default_config import CONTOUR_COLOR
from ..exceptions import WriteError


def _as_bgr(image):
    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image.copy()


def draw_contours(image, labels, color=CONTOUR_COLOR):
    """
    Draw superpixel boundaries over the source image.

    Args:
        image (numpy.ndarray): Source image (BGR or grayscale).
        labels (numpy.ndarray): Label map with the image's height and width.
        color (tuple): BGR colour of the boundary pixels.

    Returns:
        numpy.ndarray: BGR image with boundary pixels painted in color.
    """
    if labels.shape != image.shape[:2]:
        raise ValueError(f"Label map shape {labels.shape} does not match image shape {image.shape[:2]}")
    overlay = _as_bgr(image)
    overlay[find_boundaries(labels, mode='thick')] = color
    return overlay


def colorize_labels(labels, seed=42):
    """
    Create a colorized visualization of a label map.

    Every label gets a random colour; the same seed gives the same palette.
    """
    unique_labels, inverse = np.unique(labels, return_inverse=True)
    rng = np.random.default_rng(seed)
    palette = rng.integers(40, 255, size=(unique_labels.size, 3), dtype=np.uint8)
    return palette[inverse.reshape(labels.shape)]


def save_scale_overview(image, scale_results, output_path, color=CONTOUR_COLOR):
    """
    Save a figure with the original image and one contour panel per granularity.

    Args:
        image: Original input image (BGR)
        scale_results: ScaleResult list, one panel each
        output_path: Path to save the figure
        color: BGR contour colour

    Raises:
        WriteError: If the figure cannot be saved
    """
    panels = len(scale_results) + 1
    fig, axes = plt.subplots(2, panels, figsize=(panels * 4, 8), squeeze=False)

    display_image = cv2.cvtColor(_as_bgr(image), cv2.COLOR_BGR2RGB)
    axes[0, 0].imshow(display_image)
    axes[0, 0].set_title('Original Image')
    axes[1, 0].axis('off')

    for column, result in enumerate(scale_results, 1):
        contours = cv2.cvtColor(draw_contours(image, result.labels, color), cv2.COLOR_BGR2RGB)
        axes[0, column].imshow(contours)
        axes[0, column].set_title(f'{result.superpixels} requested ({result.achieved} superpixels)')
        axes[1, column].imshow(colorize_labels(result.labels))

    for ax in axes.ravel():
        ax.axis('off')

    try:
        fig.tight_layout()
        fig.savefig(output_path, dpi=100)
    except (OSError, ValueError) as e:
        raise WriteError(output_path, f"Failed to save overview figure ({e})") from e
    finally:
        plt.close(fig)
    return output_path
