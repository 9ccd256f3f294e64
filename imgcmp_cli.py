"""
Command line front end for imgcmp. Exits with 0 when the images match,
and 1 when they don't or when something went wrong.
"""

import os
import sys
import logging
import argparse

import imgcmp
from imgcmp import Verbosity

DESCRIPTION = """imgcmp: a simple pixel-wise image comparator

This tool compares between two images pixel by pixel.
For each pixel, the channels are compared with their counterparts.
If the value error for any channel exceeds the threshold, the whole pixel is considered different.
If the number of different pixels exceeds the specified limit, the result is a mismatch.
The exit code will be 0 if the images match and 1 if they don't.
When generating an error image, channels that don't pass the threshold will be kept 0.
Otherwise the channel's value will be 128 (half intensity) plus half the error value.
"""


def argument_type(parse):
	"""
	Turn a ValueError-raising parser into an argparse type
	"""
	def convert(text):
		try:
			return parse(text)
		except ValueError as err:
			raise argparse.ArgumentTypeError(str(err))
	convert.__name__ = parse.__name__
	return convert


def make_parser():
	parser = argparse.ArgumentParser(
		prog='imgcmp',
		description=DESCRIPTION,
		formatter_class=argparse.RawDescriptionHelpFormatter,
	)
	parser.add_argument('first_image_path', help='The path to the first image in the comparison.')
	parser.add_argument('second_image_path', help='The path to the second image in the comparison.')
	parser.add_argument('-t', '--threshold', type=argument_type(imgcmp.parse_channel_threshold), default=0,
		help='Sets a threshold [0-1] on the maximum allowed per-channel error. If 0, any difference passes the threshold. If 1, nothing passes the threshold. Defaults to 0.')
	parser.add_argument('-e', '--error', type=argument_type(imgcmp.parse_error_threshold), default=imgcmp.AbsoluteThreshold(0),
		help='Sets the number of pixels (or percentage of pixels, e.g. 2.5%%) allowed to be different before the result is considered a mismatch. Defaults to 0.')
	parser.add_argument('-o', '--output', help='Outputs the pixel error into an image at the given path.')
	parser.add_argument('-s', '--silent', action='store_true', help='Run in silent mode. No console output will be generated.')
	parser.add_argument('-v', '--verbose', action='store_true', help='Run in verbose mode. Extra console output will be generated.')
	return parser


def get_verbosity(args):
	if args.silent:
		return Verbosity.SILENT
	if args.verbose:
		return Verbosity.VERBOSE
	return Verbosity.DEFAULT


def configure_logging(verbosity):
	"""
	Library logging goes to stderr; IMGCMP_LOG overrides the level.
	"""
	level = logging.DEBUG if verbosity == Verbosity.VERBOSE else logging.WARNING
	env_level = os.environ.get('IMGCMP_LOG', '').upper()
	if env_level in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
		level = getattr(logging, env_level)
	logging.basicConfig(
		level=level,
		format='%(levelname)s: %(name)s: %(message)s',
		stream=sys.stderr,
	)


def run(first_path, second_path, args, verbosity):
	"""
	Compare the two image files and report the result.
	Returns True if the images match.
	"""
	def log_info(*lines, level=Verbosity.DEFAULT):
		if verbosity < level:
			return
		print(*lines)

	a = imgcmp.load_image(first_path)
	b = imgcmp.load_image(second_path)

	outcome = imgcmp.compare(
		a, b,
		channel_threshold=args.threshold,
		error_threshold=args.error,
		want_diff_image=args.output is not None,
	)

	if not outcome.same_size:
		log_info(f'Images have different sizes (Got ({imgcmp.format_size(outcome.size_a)}) and ({imgcmp.format_size(outcome.size_b)})).')
		return False

	if args.output is not None:
		imgcmp.save_image(args.output, outcome.diff_image)

	log_info('MATCH' if outcome.matched else 'MISMATCH DETECTED')
	log_info(f'Different Pixels: {outcome.mismatch_percentage or 0:g}%', level=Verbosity.VERBOSE)

	return outcome.matched


def main(argv=None):
	args = make_parser().parse_args(argv)
	verbosity = get_verbosity(args)
	configure_logging(verbosity)

	# errors are only reported when not running silently
	try:
		same = run(args.first_image_path, args.second_image_path, args, verbosity)
	except imgcmp.ImageError as err:
		if verbosity > Verbosity.SILENT:
			print(f'Error: {err}', file=sys.stderr)
		return 1

	return 0 if same else 1


if __name__ == '__main__':
	sys.exit(main())
