"""
SLIC superpixel segmentation implementation.
"""

from skimage.segmentation import slic

from ..exceptions import SegmentationError
from .base import BaseSuperpixelSegmenter


class SlicSegmenter(BaseSuperpixelSegmenter):
    """
    Segmentation using simple linear iterative clustering (SLIC).

    SLIC runs k-means in combined feature and image space, seeded on a regular
    grid with one seed per requested superpixel.
    """

    name = 'slic'

    def __init__(self, config=None):
        """
        Initialize the SLIC segmenter.

        Args:
            config (dict, optional): Configuration parameters, in addition to the
                shared ones of BaseSuperpixelSegmenter.
                compactness (float): Balance between feature and spatial proximity.
                max_num_iter (int): Maximum number of k-means iterations.
                max_size_factor (float): Maximum segment size relative to the expected size.
        """
        super().__init__(config)
        self.compactness = float(self.config.get('compactness', 0.1))
        self.max_num_iter = int(self.config.get('max_num_iter', 10))
        self.max_size_factor = float(self.config.get('max_size_factor', 3.0))

    def segment(self, image, superpixels):
        superpixels = [int(count) for count in superpixels]
        self.validate(image, superpixels)
        if not superpixels:
            return []

        try:
            features = self.preprocess(image)
            height, width = features.shape[:2]
            label_maps = {}
            for count in sorted(set(superpixels)):
                expected_size = height * width / count
                label_maps[count] = slic(
                    features,
                    n_segments=count,
                    compactness=self.compactness,
                    max_num_iter=self.max_num_iter,
                    sigma=0,
                    convert2lab=False,
                    enforce_connectivity=True,
                    min_size_factor=min(1.0, self.min_segment_size / expected_size),
                    max_size_factor=self.max_size_factor,
                    start_label=0,
                    channel_axis=-1,
                )
        except Exception as e:
            raise SegmentationError(f"SLIC segmentation failed: {e}") from e

        return self.postprocess(label_maps, superpixels)
