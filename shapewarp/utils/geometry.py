import cv2
import numpy as np


def affine_between(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """Return the 2x3 affine matrix mapping three ``src`` vertices onto ``dst``."""
    return cv2.getAffineTransform(
        np.asarray(src, dtype=np.float32).reshape(3, 2),
        np.asarray(dst, dtype=np.float32).reshape(3, 2),
    )


def triangle_area(vertices: np.ndarray) -> float:
    """Unsigned area of a triangle given as a ``(3, 2)`` array."""
    a, b, c = np.asarray(vertices, dtype=np.float64).reshape(3, 2)
    return 0.5 * abs((b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1]))


def triangle_mask(shape: tuple, vertices: np.ndarray) -> np.ndarray:
    """Filled ``uint8`` mask (255 inside) of a triangle on an image of ``shape``."""
    mask = np.zeros(shape[:2], dtype=np.uint8)
    pts = np.round(np.asarray(vertices, dtype=np.float64)).astype(np.int32).reshape(3, 2)
    cv2.fillConvexPoly(mask, pts, 255, lineType=cv2.LINE_8)
    return mask


def written_pixels(image: np.ndarray) -> np.ndarray:
    """Boolean map of pixels with a non-zero value in any channel."""
    if image.ndim == 3:
        return np.any(image != 0, axis=2)
    return image != 0
