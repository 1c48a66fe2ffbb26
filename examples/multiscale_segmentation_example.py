#!/usr/bin/env python3
"""
Example script comparing the superpixel methods on one image at several granularities.
"""

import os
import sys
import argparse

import cv2
import numpy as np

# Add the project root directory to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from superpixel_batch.traditional import SuperpixelSegmenterFactory, count_superpixels, relabel_connected_superpixels
from superpixel_batch.utils import save_scale_overview


def load_example_image(image_path=None):
    """
    Load the given image, or create a synthetic test image if none is given.

    Returns:
        numpy.ndarray: BGR image for segmentation testing
    """
    if image_path:
        image = cv2.imread(image_path)
        if image is None:
            raise SystemExit(f"Could not read image: {image_path}")
        return image

    print("No image given. Creating synthetic test image...")
    rng = np.random.default_rng(0)
    image = np.full((300, 300, 3), 40, dtype=np.uint8)

    # Coloured discs on a noisy background
    for _ in range(15):
        center = tuple(int(v) for v in rng.integers(30, 270, size=2))
        radius = int(rng.integers(10, 40))
        color = tuple(int(v) for v in rng.integers(60, 255, size=3))
        cv2.circle(image, center, radius, color, -1)

    noise = rng.normal(0, 8, image.shape)
    return np.clip(image + noise, 0, 255).astype(np.uint8)


def main():
    parser = argparse.ArgumentParser(description="Multi-scale superpixel segmentation of a single image")
    parser.add_argument("--image", type=str, default=None, help="Image to segment (synthetic if omitted)")
    parser.add_argument("-s", "--superpixels", type=int, nargs="+", default=[50, 200, 800],
                        help="Numbers of superpixels")
    parser.add_argument("--results-dir", type=str, default=os.path.join(project_root, 'results', 'examples'),
                        help="Directory to save the overview figures")
    args = parser.parse_args()

    os.makedirs(args.results_dir, exist_ok=True)
    image = load_example_image(args.image)
    factory = SuperpixelSegmenterFactory(parameters={'min_segment_size': 16})

    for method in factory.available():
        scale_results = factory.segment(image, args.superpixels, method=method)

        for result in scale_results:
            result.labels, disconnected = relabel_connected_superpixels(result.labels)
            result.achieved = count_superpixels(result.labels)
            print(f"{method}: requested {result.superpixels}, got {result.achieved} "
                  f"({disconnected} split by connectivity)")

        output_path = os.path.join(args.results_dir, f"{method}_overview.png")
        save_scale_overview(image, scale_results, output_path)
        print(f"Saved {output_path}")


if __name__ == "__main__":
    main()
