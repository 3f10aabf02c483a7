"""A simple RGB image with TGA and PPM input and output."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
from PIL import Image as _PILImage


def clamp_color_component(c):
    """Map a colour component in [0, 1] to a byte, truncating and clamping."""
    scaled = np.trunc(np.asarray(c, dtype=float) * 255)
    clamped = np.clip(scaled, 0, 255).astype(np.uint8)
    return int(clamped) if clamped.ndim == 0 else clamped


def _require_extension(filename, ext: str) -> None:
    if not str(filename).endswith(ext):
        raise ValueError(f"file name must end in {ext}: {filename}")


class Image:
    """Width x height grid of RGB colours with components in [0, 1]."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._data = np.zeros((height, width, 3))

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def get_pixel(self, x: int, y: int) -> np.ndarray:
        self._check(x, y)
        return self._data[y, x].copy()

    def set_pixel(self, x: int, y: int, color: Sequence[float]) -> None:
        self._check(x, y)
        self._data[y, x] = color

    def set_all_pixels(self, color: Sequence[float]) -> None:
        self._data[:, :] = color

    def save_tga(self, filename) -> None:
        """Write an uncompressed 24-bit TGA file."""
        _require_extension(filename, ".tga")
        header = bytearray(18)
        header[2] = 2
        header[12] = self.width % 256
        header[13] = (self.width // 256) % 256
        header[14] = self.height % 256
        header[15] = (self.height // 256) % 256
        header[16] = 24
        header[17] = 32
        pixels = clamp_color_component(self._data[::-1, :, ::-1])
        Path(filename).write_bytes(bytes(header) + pixels.tobytes())

    @classmethod
    def load_tga(cls, filename) -> Image:
        """Read an uncompressed 24-bit TGA file."""
        _require_extension(filename, ".tga")
        raw = Path(filename).read_bytes()
        if len(raw) < 18:
            raise ValueError("truncated TGA header")
        width = raw[12] + 256 * raw[13]
        height = raw[14] + 256 * raw[15]
        body = raw[18 : 18 + width * height * 3]
        if len(body) < width * height * 3:
            raise ValueError("truncated TGA pixel data")
        pixels = np.frombuffer(body, dtype=np.uint8).reshape(height, width, 3)
        image = cls(width, height)
        image._data = pixels[::-1, :, ::-1] / 255.0
        return image

    def save_ppm(self, filename) -> None:
        """Write a binary P6 PPM file with one comment line."""
        _require_extension(filename, ".ppm")
        header = f"P6\n# Creator: Image.save_ppm()\n{self.width} {self.height}\n255\n"
        pixels = clamp_color_component(self._data[::-1])
        Path(filename).write_bytes(header.encode("ascii") + pixels.tobytes())

    @classmethod
    def load_ppm(cls, filename) -> Image:
        """Read a binary P6 PPM file with one comment line."""
        _require_extension(filename, ".ppm")
        with open(filename, "rb") as fh:
            if b"P6" not in fh.readline():
                raise ValueError("not a P6 PPM file")
            if not fh.readline().startswith(b"#"):
                raise ValueError("missing PPM comment line")
            width, height = (int(v) for v in fh.readline().split()[:2])
            if b"255" not in fh.readline():
                raise ValueError("PPM maximum value must be 255")
            body = fh.read(width * height * 3)
        if len(body) < width * height * 3:
            raise ValueError("truncated PPM pixel data")
        pixels = np.frombuffer(body, dtype=np.uint8).reshape(height, width, 3)
        image = cls(width, height)
        image._data = pixels[::-1] / 255.0
        return image

    @classmethod
    def load_image(cls, filename) -> Image:
        """Read any image format Pillow understands."""
        with _PILImage.open(filename) as src:
            pixels = np.asarray(src.convert("RGB"), dtype=np.uint8)
        height, width = pixels.shape[:2]
        image = cls(width, height)
        image._data = pixels / 255.0
        return image

    @staticmethod
    def compare(img1: Image, img2: Image) -> Image:
        """Per-pixel absolute difference of two images of equal size."""
        if img1.width != img2.width or img1.height != img2.height:
            raise ValueError("images differ in size")
        diff = Image(img1.width, img1.height)
        diff._data = np.abs(img1._data - img2._data)
        return diff