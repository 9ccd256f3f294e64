"""
Pixel-wise image comparison requirements:

- opencv-python
- numpy

Two images are compared channel by channel. A channel whose absolute
difference exceeds the channel threshold is divergent, and a pixel with
any divergent channel is mismatched. The images match when the number of
mismatched pixels does not exceed the error threshold.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from fractions import Fraction

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Divergent channels are remapped into [128, 255] so they always show up.
DIFF_BASE = 128


class Verbosity(IntEnum):
	SILENT = 0   # nothing is printed
	DEFAULT = 1
	VERBOSE = 2  # extra information is printed


class ImageError(ValueError):
	"""
	An image could not be read or written
	"""

	def __init__(self, path, reason):
		self.path = path
		self.reason = reason
		super().__init__(f'{reason} {path}')


class ImageReadError(ImageError):
	pass


class ImageWriteError(ImageError):
	pass


@dataclass(frozen=True)
class AbsoluteThreshold:
	"""
	A fixed number of pixels allowed to differ
	"""
	count: int

	def __post_init__(self):
		if self.count < 0:
			raise ValueError(f'error threshold must not be negative: {self.count}')

	def resolve(self, width, height):
		return self.count

	def __str__(self):
		return str(self.count)


@dataclass(frozen=True)
class RatioThreshold:
	"""
	A fraction of the image's pixels allowed to differ. The ratio is scaled
	by the pixel count and truncated once the image size is known.
	"""
	ratio: Fraction

	def __post_init__(self):
		# floats go through their shortest decimal form so 0.29 stays 29/100
		ratio = self.ratio
		if isinstance(ratio, float):
			ratio = Fraction(str(ratio))
		else:
			ratio = Fraction(ratio)
		if ratio < 0 or ratio > 1:
			raise ValueError(f'error threshold ratio must be within [0, 1]: {self.ratio}')
		object.__setattr__(self, 'ratio', ratio)

	def resolve(self, width, height):
		return int(self.ratio * (width * height))

	def __str__(self):
		return f'{float(self.ratio) * 100:g}%'


def parse_error_threshold(text):
	"""
	Parse an error threshold: "12" is an absolute pixel count,
	"2.5%" is a percentage of the image's pixels.
	"""
	text = text.strip()
	if text.endswith('%'):
		try:
			percent = Fraction(text[:-1].strip())
		except (ValueError, ZeroDivisionError):
			raise ValueError(f'invalid error threshold percentage: {text!r}')
		if percent < 0 or percent > 100:
			raise ValueError(f'error threshold percentage must be within [0%, 100%]: {text!r}')
		return RatioThreshold(percent / 100)

	try:
		count = int(text)
	except ValueError:
		raise ValueError(f'invalid error threshold: {text!r}')
	if count < 0:
		raise ValueError(f'error threshold must not be negative: {text!r}')
	return AbsoluteThreshold(count)


def parse_channel_threshold(value):
	"""
	Convert a [0-1] tolerance into an 8-bit channel threshold. The scaled
	value is truncated, not rounded: 0.5 gives 127.
	"""
	value = float(value)
	if not 0.0 <= value <= 1.0:
		raise ValueError(f'channel threshold must be within [0, 1]: {value}')
	return int(value * 255)


def image_size(img):
	"""(width, height) of an image array"""
	return (img.shape[1], img.shape[0])


def format_size(size):
	return f'{size[0]}x{size[1]}'


@dataclass
class ComparisonOutcome:
	matched: bool
	size_a: tuple
	size_b: tuple
	mismatched_pixel_count: int = None
	diff_image: np.ndarray = None

	@property
	def same_size(self):
		return self.size_a == self.size_b

	@property
	def total_pixels(self):
		return self.size_a[0] * self.size_a[1]

	@property
	def mismatch_percentage(self):
		if not self.same_size or self.total_pixels == 0:
			return None
		return 100 * self.mismatched_pixel_count / self.total_pixels


def load_image(path):
	"""
	Load an image as 3-channel 8-bit color, or explain why that wasn't possible.
	Alpha is dropped and grayscale is expanded by OpenCV.
	"""
	path = str(path)
	try:
		image = cv2.imread(path, cv2.IMREAD_COLOR)
	except cv2.error as err:
		raise ImageReadError(path, 'Failed to decode') from err
	if image is None:
		raise ImageReadError(path, 'Failed to read')
	logger.debug('loaded %s (%s)', path, format_size(image_size(image)))
	return image


def save_image(path, image):
	"""
	Write an image, the format follows the file extension.
	"""
	path = str(path)
	try:
		written = cv2.imwrite(path, image)
	except cv2.error as err:
		raise ImageWriteError(path, 'Failed to write') from err
	if not written:
		raise ImageWriteError(path, 'Failed to write')
	logger.debug('wrote %s', path)


def channel_differences(a, b, channel_threshold):
	"""
	Per-channel absolute differences and the mask of divergent channels
	"""
	if a.size == 0:
		# cv2.absdiff returns None for empty Mats
		diff = np.zeros(a.shape, dtype=np.uint8)
	else:
		diff = cv2.absdiff(a, b)
	return diff, diff > channel_threshold


def remap_divergence(diff, divergent):
	"""
	Build the diff image: non-divergent channels are 0, divergent ones
	become 128 plus half their difference.
	"""
	return np.where(divergent, DIFF_BASE | (diff >> 1), 0).astype(np.uint8)


def compare(a, b, channel_threshold=0, error_threshold=AbsoluteThreshold(0), want_diff_image=False):
	"""
	Compare two 3-channel 8-bit images of the same size.

	Images of different sizes never match; in that case no pixels are
	scanned, the mismatch count is None and no diff image is produced.
	A pixel is mismatched when any of its channels differs by more than
	channel_threshold, and the images match when the number of mismatched
	pixels does not exceed the resolved error_threshold.
	"""
	if not 0 <= channel_threshold <= 255:
		raise ValueError(f'channel threshold must be within [0, 255]: {channel_threshold}')

	size_a, size_b = image_size(a), image_size(b)
	if size_a != size_b:
		logger.debug('size mismatch: %s vs %s', format_size(size_a), format_size(size_b))
		return ComparisonOutcome(matched=False, size_a=size_a, size_b=size_b)

	allowed = error_threshold.resolve(*size_a)
	logger.debug('channel threshold %d, error threshold %s (%d pixel(s))', channel_threshold, error_threshold, allowed)

	diff, divergent = channel_differences(a, b, channel_threshold)
	wrong_pixels = int(np.count_nonzero(divergent.any(axis=2)))

	diff_image = remap_divergence(diff, divergent) if want_diff_image else None

	return ComparisonOutcome(
		matched=wrong_pixels <= allowed,
		size_a=size_a,
		size_b=size_b,
		mismatched_pixel_count=wrong_pixels,
		diff_image=diff_image,
	)
