"""
Hierarchical histogram threshold segmentation (HHTS).
"""

import heapq
import itertools

import numpy as np
from loguru import logger
from scipy import ndimage as ndi

from ..exceptions import SegmentationError
from .base import BaseSuperpixelSegmenter


def otsu_histogram_threshold(hist):
    """
    Find Otsu's threshold on a histogram.

    Args:
        hist (numpy.ndarray): Bin counts.

    Returns:
        int or None: Index of the last bin of the lower class, or None if fewer
        than two bins are occupied.
    """
    counts = np.asarray(hist, dtype=np.float64)
    if np.count_nonzero(counts) < 2:
        return None

    centers = np.arange(counts.size, dtype=np.float64)
    weight_low = np.cumsum(counts)
    weight_high = weight_low[-1] - weight_low
    mass_low = np.cumsum(counts * centers)
    with np.errstate(divide='ignore', invalid='ignore'):
        mean_low = mass_low / weight_low
        mean_high = (mass_low[-1] - mass_low) / weight_high
        variance = weight_low * weight_high * (mean_low - mean_high) ** 2
    variance = np.nan_to_num(variance, nan=-1.0)
    variance[(weight_low == 0) | (weight_high == 0)] = -1.0
    return int(np.argmax(variance))


def shared_borders(components):
    """
    Count the 4-neighbour pixel contacts between labelled components.

    Args:
        components (numpy.ndarray): 2-D label image, 0 is background.

    Returns:
        dict: For each label, a dict mapping every touching label to the border length.
    """
    pairs = []
    for first, second in ((components[:, :-1], components[:, 1:]), (components[:-1, :], components[1:, :])):
        touching = (first != second) & (first > 0) & (second > 0)
        pairs.append(np.stack([first[touching], second[touching]], axis=1))
    pairs = np.sort(np.concatenate(pairs), axis=1)

    borders = {}
    if pairs.size == 0:
        return borders
    unique_pairs, lengths = np.unique(pairs, axis=0, return_counts=True)
    for (first, second), length in zip(unique_pairs.tolist(), lengths.tolist()):
        borders.setdefault(first, {})[second] = length
        borders.setdefault(second, {})[first] = length
    return borders


class HHTSSegmenter(BaseSuperpixelSegmenter):
    """
    Superpixels by hierarchical histogram thresholding.

    The image starts as a single segment. The segment with the highest split
    score is repeatedly thresholded and broken into connected pieces, until
    each requested number of superpixels has been reached or no segment can
    be split any more. A segment's split score is the standard deviation of a
    channel times the fraction of histogram bins the channel spans.

    Feature channels are tried in score order with an Otsu threshold on their
    histogram; when none of them yields two pieces the segment is bisected
    along its bounding box. Pieces smaller than the minimum segment size are
    merged into the touching piece they share the longest border with, so
    every segment stays 4-connected and at least min_segment_size pixels large.
    """

    name = 'hhts'

    def segment(self, image, superpixels):
        """
        Segment the input image at every requested granularity.

        Args:
            image (numpy.ndarray): Input BGR or grayscale image.
            superpixels (sequence of int): Requested numbers of superpixels.

        Returns:
            list of ScaleResult: One result per requested granularity, in request order.
        """
        superpixels = [int(count) for count in superpixels]
        self.validate(image, superpixels)
        if not superpixels:
            return []

        try:
            features = self.preprocess(image)
            label_maps = self._hierarchical_split(features, sorted(set(superpixels)))
        except Exception as e:
            raise SegmentationError(f"HHTS segmentation failed: {e}") from e

        return self.postprocess(label_maps, superpixels)

    def _hierarchical_split(self, features, targets):
        height, width, n_channels = features.shape
        flat = features.reshape(-1, n_channels)
        labels = np.zeros(height * width, dtype=np.int32)
        segments = {0: np.arange(height * width)}
        pending = list(targets)
        snapshots = {}

        heap = []
        self._push(heap, flat, 0, segments[0])
        while pending and pending[0] <= len(segments):
            snapshots[pending.pop(0)] = labels.reshape(height, width).copy()

        splits = 0
        while heap and pending:
            _, label, candidates = heapq.heappop(heap)
            pixels = segments[label]
            # Never overshoot the next requested count
            max_pieces = pending[0] - len(segments) + 1
            pieces = self._split(width, pixels, flat[pixels], candidates, max_pieces)
            if len(pieces) < 2:
                continue

            splits += 1
            segments[label] = pieces[0]
            new_labels = [label]
            for piece in pieces[1:]:
                new_label = len(segments)
                labels[piece] = new_label
                segments[new_label] = piece
                new_labels.append(new_label)
            for new_label in new_labels:
                self._push(heap, flat, new_label, segments[new_label])

            while pending and pending[0] <= len(segments):
                snapshots[pending.pop(0)] = labels.reshape(height, width).copy()

        # Splitting exhausted before the largest targets were reached
        for target in pending:
            snapshots[target] = labels.reshape(height, width).copy()

        logger.debug(f"HHTS: {len(segments)} segments after {splits} splits")
        return snapshots

    def _push(self, heap, flat, label, pixels):
        candidate = self._split_candidates(flat[pixels])
        if candidate is not None:
            score, channels = candidate
            heapq.heappush(heap, (-score, label, channels))

    def _bin_index(self, values):
        return np.minimum((values * self.bins).astype(np.intp), self.bins - 1)

    def _split_candidates(self, values):
        """
        Score a segment and rank its channels.

        Returns:
            tuple or None: (best score, list of (channel, threshold bin) in score
            order), or None if the segment should stay whole.
        """
        if values.shape[0] < 2 * self.min_segment_size:
            return None

        bin_index = self._bin_index(values)
        scored = []
        for channel in range(values.shape[1]):
            hist = np.bincount(bin_index[:, channel], minlength=self.bins)
            occupied = np.flatnonzero(hist)
            spread = (occupied[-1] - occupied[0] + 1) / self.bins
            scored.append((float(values[:, channel].std()) * spread, channel, hist))

        best_score = max(score for score, _, _ in scored)
        if best_score <= self.split_threshold:
            return None

        channels = []
        for _, channel, hist in sorted(scored, key=lambda item: (-item[0], item[1])):
            threshold = otsu_histogram_threshold(hist)
            if threshold is not None:
                channels.append((channel, threshold))
        return best_score, channels

    def _split(self, width, pixels, values, channels, max_pieces):
        """Try the ranked channels, then spatial bisection, until a split yields two or more pieces."""
        bin_index = self._bin_index(values)
        sides = (bin_index[:, channel] <= threshold for channel, threshold in channels)
        for low in itertools.chain(sides, self._bisections(width, pixels)):
            pieces = self._split_segment(width, pixels, low, max_pieces)
            if len(pieces) > 1:
                return pieces
        return [pixels]

    def _bisections(self, width, pixels):
        rows, cols = np.divmod(pixels, width)
        for coords in sorted((rows, cols), key=lambda c: int(c.max() - c.min()), reverse=True):
            low_end, high_end = int(coords.min()), int(coords.max())
            if high_end > low_end:
                yield coords <= (low_end + high_end) // 2

    def _split_segment(self, width, pixels, low, max_pieces):
        """Break both sides of a threshold into 4-connected pieces and merge the small ones."""
        rows, cols = np.divmod(pixels, width)
        local_rows = rows - rows.min()
        local_cols = cols - cols.min()
        components = np.zeros((local_rows.max() + 1, local_cols.max() + 1), dtype=np.int32)

        count = 0
        for side in (low, ~low):
            if not side.any():
                continue
            mask = np.zeros(components.shape, dtype=bool)
            mask[local_rows[side], local_cols[side]] = True
            side_components, num_components = ndi.label(mask)
            components[mask] = side_components[mask] + count
            count += num_components
        if count < 2:
            return [pixels]

        components = self._merge_small_components(components, count, max_pieces)
        _, piece_of_pixel = np.unique(components[local_rows, local_cols], return_inverse=True)
        piece_of_pixel = piece_of_pixel.ravel()
        order = np.argsort(piece_of_pixel, kind='stable')
        sizes = np.bincount(piece_of_pixel)
        return np.split(pixels[order], np.cumsum(sizes)[:-1])

    def _merge_small_components(self, components, count, max_pieces):
        """
        Merge components into their longest-border neighbour, smallest first.

        Merging continues while the smallest component is below the minimum
        segment size or more than max_pieces components remain.
        """
        sizes = np.bincount(components.ravel(), minlength=count + 1)
        sizes[0] = 0
        borders = shared_borders(components)
        parent = np.arange(count + 1)
        alive = count

        heap = [(int(sizes[label]), label) for label in range(1, count + 1)]
        heapq.heapify(heap)
        while heap and alive > 1:
            size, label = heapq.heappop(heap)
            if parent[label] != label or size != sizes[label]:
                continue
            if size >= self.min_segment_size and alive <= max_pieces:
                break
            neighbours = borders.pop(label, {})
            if not neighbours:
                continue

            target = max(neighbours, key=lambda neighbour: (neighbours[neighbour], -neighbour))
            parent[label] = target
            sizes[target] += size
            sizes[label] = 0
            alive -= 1
            for neighbour, length in neighbours.items():
                del borders[neighbour][label]
                if neighbour != target:
                    borders[target][neighbour] = borders[target].get(neighbour, 0) + length
                    borders[neighbour][target] = borders[neighbour].get(target, 0) + length
            heapq.heappush(heap, (int(sizes[target]), target))

        # Resolve merge chains to their final component
        while True:
            resolved = parent[parent]
            if np.array_equal(resolved, parent):
                break
            parent = resolved
        return parent[components]
