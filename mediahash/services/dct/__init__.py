"""
DCT-based 64-bit perceptual hash and its numeric kernels.
"""

from .hashing import dct_image_hash, threshold_bits
from .kernels import BoundaryMode, convolve, kth_smallest, median, mul_matrix, nn_resize
from .matrix import DCT_SIZE, dct_matrices

__all__ = [
    "BoundaryMode",
    "DCT_SIZE",
    "convolve",
    "dct_image_hash",
    "dct_matrices",
    "kth_smallest",
    "median",
    "mul_matrix",
    "nn_resize",
    "threshold_bits",
]
