"""
STARSIGHT Pixel Window

Read-only 2-D accessor over pixel values. The full-frame pipeline and the
patch helpers (measure_fwhm / measure_snr) both work on a PixelWindow, so
the numeric code never depends on the storage width of the caller's buffer.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from starsight.exceptions import InvalidInputError
from starsight.types import PixelBuffer, Region


@dataclass(frozen=True)
class PixelWindow:
    """
    Immutable float64 view of a frame or patch.

    Attributes:
        data: 2-D array (height x width), write-protected
        x_offset: Column of data[0, 0] in the parent frame
        y_offset: Row of data[0, 0] in the parent frame
    """
    data: np.ndarray
    x_offset: int = 0
    y_offset: int = 0

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> int:
        return int(self.data.size)

    @classmethod
    def from_buffer(
        cls,
        pixels: PixelBuffer,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> "PixelWindow":
        """
        Wrap a caller's buffer without mutating it.

        Args:
            pixels: 2-D array, or flat row-major buffer with width/height
            width: Frame width (required for flat buffers)
            height: Frame height (required for flat buffers)

        Returns:
            PixelWindow over a float64 copy of the pixels

        Raises:
            InvalidInputError: for zero-sized, mis-sized, non-finite or
                non-numeric buffers
        """
        if isinstance(pixels, (bytes, bytearray, memoryview)):
            array = np.frombuffer(pixels, dtype=np.uint8)
        else:
            try:
                array = np.asarray(pixels)
            except (TypeError, ValueError) as e:
                raise InvalidInputError(f"Pixel buffer is not array-like: {e}", reason="not_array") from e

        if array.dtype.kind not in "uif":
            raise InvalidInputError(
                f"Pixel buffer must be numeric, got dtype {array.dtype}",
                reason="non_numeric",
            )

        if array.ndim == 2:
            if width is not None and width != array.shape[1]:
                raise InvalidInputError(
                    "Width does not match 2-D buffer shape",
                    width=width, height=height, length=int(array.size), reason="shape_mismatch",
                )
            if height is not None and height != array.shape[0]:
                raise InvalidInputError(
                    "Height does not match 2-D buffer shape",
                    width=width, height=height, length=int(array.size), reason="shape_mismatch",
                )
            frame = array
        elif array.ndim == 1:
            if width is None or height is None:
                raise InvalidInputError(
                    "Flat pixel buffers need width and height",
                    width=width, height=height, length=int(array.size), reason="missing_dimensions",
                )
            if width <= 0 or height <= 0:
                raise InvalidInputError(
                    "Width and height must be positive",
                    width=width, height=height, length=int(array.size), reason="zero_size",
                )
            if array.size != width * height:
                raise InvalidInputError(
                    "Buffer length does not match width * height",
                    width=width, height=height, length=int(array.size), reason="length_mismatch",
                )
            frame = array.reshape(height, width)
        else:
            raise InvalidInputError(
                f"Pixel buffer must be 1-D or 2-D, got {array.ndim} dimensions",
                reason="bad_dimensions",
            )

        if frame.size == 0:
            raise InvalidInputError(
                "Pixel buffer is empty",
                width=int(frame.shape[1]), height=int(frame.shape[0]), length=0, reason="zero_size",
            )

        data = np.array(frame, dtype=np.float64)
        if not np.all(np.isfinite(data)):
            raise InvalidInputError(
                "Pixel buffer contains non-finite values",
                width=int(data.shape[1]), height=int(data.shape[0]),
                length=int(data.size), reason="non_finite",
            )

        data.setflags(write=False)
        return cls(data=data)

    def crop(self, region: Region) -> "PixelWindow":
        """
        Return a sub-window; offsets are kept so coordinates can be mapped
        back to the parent frame.

        Raises:
            InvalidInputError: if the region is empty or leaves the frame
        """
        x, y, w, h = region
        if w <= 0 or h <= 0 or x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            raise InvalidInputError(
                f"Region {region} is outside the {self.width}x{self.height} frame",
                width=w, height=h, reason="bad_region",
            )
        sub = self.data[y:y + h, x:x + w]
        return PixelWindow(data=sub, x_offset=self.x_offset + x, y_offset=self.y_offset + y)

    def cutout(self, cx: float, cy: float, radius: float) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Square cutout around (cx, cy), clipped to the window bounds.

        Returns:
            (values, dx, dy): the pixel values and each pixel's offset from
            (cx, cy), broadcastable against values
        """
        r = int(np.ceil(radius))
        xi, yi = int(round(cx)), int(round(cy))
        x0, x1 = max(0, xi - r), min(self.width, xi + r + 1)
        y0, y1 = max(0, yi - r), min(self.height, yi + r + 1)

        values = self.data[y0:y1, x0:x1]
        dy, dx = np.ogrid[y0:y1, x0:x1]
        return values, dx - cx, dy - cy
