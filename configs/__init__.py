"""
Default configuration for batch superpixel segmentation.
"""
