#! /usr/bin/python3
# -*- coding: utf-8 -*-
##################################################################################################
# Copyright (c) 2025 Mikio Hirabayashi
#
# Permission is hereby granted, free of charge, to any person obtaining a copy of this software
# and associated documentation files (the "Software"), to deal in the Software without
# restriction, including without limitation the rights to use, copy, modify, merge, publish,
# distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all copies or
# substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING
# BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM,
# DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.
##################################################################################################


import argparse
import contextlib
import logging
import io
import math
import os
import re
import shutil
import signal
import subprocess
import sys
import tempfile
import time

import cv2
import exifread
import numpy as np
from PIL import Image, ImageCms


PROG_NAME = "autocolor.py"
PROG_VERSION = "0.0.2"
CMD_EXIFTOOL = "exiftool"
EXTS_IMAGE = [".jpg", ".jpeg", ".png", ".tiff", ".tif", ".webp", ".jp2"]
EXTS_EXIFTOOL = [".jpg", ".jpeg", ".tiff", ".tif", ".webp", ".jp2"]
EXTS_EXIFREAD = [".jpg", ".jpeg", ".tiff", ".tif"]
EXTS_EXIFTOOL_ICC_WRITE = [".jpg", ".jpeg", ".png", ".tiff", ".tif", ".webp", ".jp2"]
EXTS_PILLOW_ICC_READ = [".jpg", ".jpeg", ".png", ".tiff", ".tif", ".webp"]
EXTS_PILLOW_ICC_WRITE = [".jpg", ".jpeg", ".png", ".webp"]
METHODS = ["gamma", "recolor", "none"]
CLIP_MODES = ["together", "separate"]
DEFAULT_METHOD = "gamma"
DEFAULT_CLIP_MODE = "together"
DEFAULT_CLIP_LOW = 0.1
CHANNEL_NAMES = ["red", "green", "blue"]
CLEANUP_SIGNALS = ["SIGHUP", "SIGINT", "SIGQUIT", "SIGTERM"]


logging.basicConfig(format="%(message)s", stream=sys.stderr)
logger = logging.getLogger(PROG_NAME)
logger.setLevel(logging.INFO)
cmd_env = os.environ
cmd_env["PATH"] = cmd_env.get("PATH", "") + ":/opt/homebrew/bin"
cmd_env["PATH"] = cmd_env["PATH"] + ":/usr/local/bin"
cv2.setLogLevel(0)


def has_command(name):
  """Checks existence of a command."""
  return bool(shutil.which(name))


def read_file(path):
  """Reads a file and returns a byte array of the content."""
  with open(path, "rb") as input_file:
    return input_file.read()


def normalize_input_image(image):
  """Normalizes the input image as float RGB data in BGR space."""
  if image.dtype == np.float32:
    bits = 32
  elif image.dtype == np.uint16:
    image = image.astype(np.float32) / float((1<<16) - 1)
    bits = 16
  elif image.dtype == np.uint8:
    image = image.astype(np.float32) / float((1<<8) - 1)
    bits = 8
  else:
    raise ValueError(f"Unsupported pixel type: {image.dtype}")
  if len(image.shape) == 2:
    image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
  elif image.shape[2] == 4:
    image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
  image = np.clip(image, 0, 1).astype(np.float32)
  return image, bits


ICC_PROFILES = {
  "srgb": {
    "keywords": ["srgb"],
    "file_names": ["sRGB.icc", "sRGB_IEC61966-2-1_no_black_scaled.icc"],
  },
  "prophoto_rgb": {
    "keywords": ["prophoto"],
    "file_names": ["ProPhoto-RGB.icc", "ProPhotoRGB.icc"],
  },
  "adobe_rgb": {
    "keywords": ["adobe"],
    "file_names": ["Adobe-RGB.icc", "AdobeRGB1998.icc"],
  },
  "display_p3": {
    "keywords": ["display p3", "displayp3"],
    "file_names": ["Display-P3.icc", "DisplayP3.icc"],
  },
  "bt2020": {
    "keywords": ["2020"],
    "file_names": ["BT2020.icc", "Rec-2020.icc", "Rec2020-Rec1886.icc"],
  },
}


def find_icc_file(name):
  """Finds the path of the ICC profile name."""
  ICC_DIRS = [
    "/usr/share/color/icc",
    "/usr/local/share/color/icc",
    "./icc", ".",
  ]
  profile = ICC_PROFILES.get(name)
  if not profile:
    return None
  file_names = profile["file_names"]
  for directory in ICC_DIRS:
    for file_name in file_names:
      full_path = os.path.join(directory, file_name)
      if os.path.isfile(full_path):
        return full_path
  return None


def check_icc_profile(file_path, default="srgb", meta=None):
  """Checks the ICC profile of the image and returns its name and embedded data."""
  ext = os.path.splitext(file_path)[1].lower()
  desc = ""
  icc_data = None
  if ext in EXTS_PILLOW_ICC_READ:
    try:
      with Image.open(file_path) as img:
        icc_data = img.info.get("icc_profile", None)
      if icc_data:
        profile = ImageCms.ImageCmsProfile(io.BytesIO(icc_data))
        color_space = profile.profile.xcolor_space.strip()
        if color_space == "RGB":
          desc = ImageCms.getProfileDescription(profile)
        else:
          logger.debug(f"ignored ICC profile of non-RGB color space: {color_space}")
          icc_data = None
    except (OSError, ImageCms.PyCMSError) as e:
      logger.debug(f"unreadable ICC profile: {e}")
  if not desc and meta:
    desc = meta.get("_icc_", "")
  desc = desc.strip().lower()
  for name, item in ICC_PROFILES.items():
    if any(keyword in desc for keyword in item["keywords"]):
      return name, icc_data
  return default, icc_data


def load_icc_data(icc_name):
  """Loads the data of a known ICC profile from the system directories."""
  icc_path = find_icc_file(icc_name)
  if not icc_path:
    logger.debug(f"missing ICC profile: {icc_name}")
    return None
  return read_file(icc_path)


def attach_icc_profile(file_path, icc_data):
  """Attaches ICC profile data to the image file by exiftool."""
  ext = os.path.splitext(file_path)[1].lower()
  if not has_command(CMD_EXIFTOOL) or ext not in EXTS_EXIFTOOL_ICC_WRITE:
    logger.warning(f"ICC profile is not saved: {file_path}")
    return False
  logger.info(f"Saving ICC profile")
  with tempfile.NamedTemporaryFile(delete=False, suffix=".icc") as icc_tmp:
    icc_tmp.write(icc_data)
    icc_tmp_path = icc_tmp.name
  cmd = [CMD_EXIFTOOL, f"-icc_profile<={icc_tmp_path}",
         "-overwrite_original", file_path]
  logger.debug(f"running: {' '.join(cmd)}")
  try:
    subprocess.run(cmd, check=True, stdin=subprocess.DEVNULL,
                   stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
  except subprocess.CalledProcessError as e:
    logger.warning(f"failed to save ICC profile: {e}")
    return False
  finally:
    os.remove(icc_tmp_path)
  return True


def load_image(file_path, meta=None):
  """Loads an image and returns its RGB data as a NumPy array."""
  logger.debug(f"loading image: {file_path}")
  image = cv2.imread(file_path, cv2.IMREAD_UNCHANGED)
  if image is None:
    raise ValueError(f"Failed to load image: {file_path}")
  icc_name, icc_data = check_icc_profile(file_path, "srgb", meta)
  image, bits = normalize_input_image(image)
  h, w = image.shape[:2]
  logger.debug(f"input image: h={h}, w={w}, area={h*w}, bits={bits}, icc={icc_name}")
  return image, bits, icc_name, icc_data


def save_image(file_path, image, bits, icc_data=None):
  """Saves an image in the format of the file extension."""
  assert image.dtype == np.float32
  logger.debug(f"saving image: {file_path}")
  ext = os.path.splitext(file_path)[1].lower()
  if ext in [".jpg", ".jpeg", ".webp"]:
    image = (np.clip(image, 0, 1) * ((1<<8) - 1)).astype(np.uint8)
  elif ext in [".tiff", ".tif"]:
    if bits == 32:
      image = np.clip(image, 0, 1).astype(np.float32)
    elif bits == 16:
      image = (np.clip(image, 0, 1) * ((1<<16) - 1)).astype(np.uint16)
    else:
      image = (np.clip(image, 0, 1) * ((1<<8) - 1)).astype(np.uint8)
  elif ext in [".png", ".jp2"]:
    if bits == 32 or bits == 16:
      image = (np.clip(image, 0, 1) * ((1<<16) - 1)).astype(np.uint16)
    else:
      image = (np.clip(image, 0, 1) * ((1<<8) - 1)).astype(np.uint8)
  else:
    raise ValueError(f"Unsupported file format: {ext}")
  if icc_data and ext in EXTS_PILLOW_ICC_WRITE and image.dtype == np.uint8:
    logger.debug(f"saving image with ICC profile by Pillow")
    rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    Image.fromarray(rgb_image).save(file_path, icc_profile=icc_data, quality=95)
    return
  success = cv2.imwrite(file_path, image)
  if not success:
    raise ValueError(f"Failed to save image: {file_path}")
  if icc_data:
    attach_icc_profile(file_path, icc_data)


def get_metadata(path):
  """Gets color profile hints from a image file."""
  meta = {}
  ext = os.path.splitext(path)[1].lower()
  if has_command(CMD_EXIFTOOL) and ext in EXTS_EXIFTOOL:
    cmd = [CMD_EXIFTOOL, "-s", "-t", "-n", path]
    logger.debug(f"running: {' '.join(cmd)}")
    content = subprocess.check_output(
      cmd, stdin=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    lines = content.decode("utf-8", "ignore").split("\n")
    for line in lines:
      fields = line.strip().split("\t", 1)
      if len(fields) < 2: continue
      name, value = fields[:2]
      if name == "ProfileDescription":
        meta["_icc_"] = value
      if name == "ICCProfileName":
        meta["_icc_"] = value
  if not meta and ext in EXTS_EXIFREAD:
    try:
      with open(path, "rb") as f:
        tags = exifread.process_file(f, details=False)
    except (OSError, ValueError, KeyError, IndexError, TypeError) as e:
      logger.debug(f"unreadable EXIF data: {e}")
      tags = {}
    for name, value in tags.items():
      value = str(value)
      if name == "EXIF ColorSpace" and value == "sRGB":
        meta.setdefault("_icc_", "sRGB")
      if name == "Interoperability InteroperabilityIndex" and value == "R03":
        meta["_icc_"] = "Adobe RGB"
  logger.debug(f"metadata: {meta}")
  return meta


def copy_metadata(source_path, target_path):
  """Copies EXIF data from source image to target image."""
  source_ext = os.path.splitext(source_path)[1].lower()
  target_ext = os.path.splitext(target_path)[1].lower()
  if has_command(CMD_EXIFTOOL) and source_ext in EXTS_EXIFTOOL and target_ext in EXTS_EXIFTOOL:
    logger.info(f"Copying metadata")
    cmd = [CMD_EXIFTOOL, "-TagsFromFile", source_path,
           "-thumbnailimage=", "-f", "-m", "-overwrite_original", target_path]
    logger.debug(f"running: {' '.join(cmd)}")
    try:
      subprocess.run(cmd, check=True, stdin=subprocess.DEVNULL,
                     stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except subprocess.CalledProcessError as e:
      logger.warning(f"failed to copy metadata: {e}")


def exit_on_signal(signum, frame):
  """Exits the process so that the work directory is removed."""
  logger.error(f"Interrupted by signal {signum}")
  sys.exit(1)


@contextlib.contextmanager
def make_work_dir():
  """Makes a private directory for intermediate files.

  The directory and its content are removed when the context exits, including
  the exit by the hangup, interrupt, quit and termination signals.
  """
  work_dir = tempfile.mkdtemp(prefix="autocolor_")
  logger.debug(f"work directory: {work_dir}")
  saved_handlers = {}
  try:
    for name in CLEANUP_SIGNALS:
      signum = getattr(signal, name, None)
      if signum is None: continue
      saved_handlers[signum] = signal.signal(signum, exit_on_signal)
    yield work_dir
  finally:
    for signum, handler in saved_handlers.items():
      signal.signal(signum, handler)
    shutil.rmtree(work_dir, ignore_errors=True)
    logger.debug(f"removed work directory: {work_dir}")


def save_intermediate(work_dir, name, image):
  """Saves an intermediate image in the work directory and returns its path."""
  assert image.dtype == np.float32
  path = os.path.join(work_dir, name + ".npy")
  np.save(path, image)
  return path


def load_intermediate(path):
  """Loads an intermediate image from the work directory."""
  image = np.load(path)
  assert image.dtype == np.float32
  return image


def separate_channels(image):
  """Separates a BGR image into red, green, and blue channel images."""
  assert image.dtype == np.float32
  blue, green, red = cv2.split(image)
  return red, green, blue


def combine_channels(red, green, blue):
  """Combines red, green, and blue channel images into a BGR image."""
  return cv2.merge([blue, green, red])


def convert_luminance(image):
  """Converts a BGR image into a single-channel luminance image."""
  assert image.dtype == np.float32
  return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def compute_mean_percent(image):
  """Computes the mean intensity of a single-channel image in the 0-100 scale."""
  assert image.dtype == np.float32
  return 100 * float(cv2.mean(image)[0])


def compute_gamma_value(mean, target):
  """Computes the gamma to move a channel mean to the target, both in percent."""
  if mean <= 0:
    mean = 100
  if mean >= 100 or target <= 0 or target >= 100:
    return 1.0
  return math.log(mean / 100) / math.log(target / 100)


def compute_recolor_ratio(mean, target):
  """Computes the linear ratio to move a channel mean to the target, both in percent."""
  if mean <= 0:
    mean = 100
  return target / mean


def apply_gamma_image(image, gamma):
  """Adjusts image brightness by a gamma transformation."""
  assert image.dtype == np.float32
  if gamma < 1e-6:
    return image
  image = np.power(image, 1 / gamma)
  return np.clip(image, 0, 1).astype(np.float32)


def apply_recolor_image(image, ratios):
  """Scales the red, green, and blue channels by a diagonal color matrix."""
  assert image.dtype == np.float32
  ratio_r, ratio_g, ratio_b = ratios
  matrix = np.diag([ratio_b, ratio_g, ratio_r]).astype(np.float32)
  image = cv2.transform(image, matrix)
  return np.clip(image, 0, 1).astype(np.float32)


def stretch_contrast_image(image, cliplow, cliphigh):
  """Stretches contrast of the image by clipping percentages of dark and bright pixels.

  The cliplow percentile is mapped to black and the (100 - cliphigh) percentile is mapped
  to white. For a color image, the percentiles are taken from all channels together so
  that the channels are stretched in sync.
  """
  assert image.dtype == np.float32
  lower = np.percentile(image, cliplow)
  upper = np.percentile(image, 100 - cliphigh)
  logger.debug(f"stretch: lower={lower:.4f}, upper={upper:.4f}")
  scale = 1.0 / max(upper - lower, 1e-6)
  stretched = (image - lower) * scale
  return np.clip(stretched, 0, 1).astype(np.float32)


def log_image_stats(image, prefix):
  """prints logs of an image."""
  assert image.dtype == np.float32
  minv = np.min(image)
  maxv = np.max(image)
  mean = np.mean(image)
  stddev = np.std(image)
  p01 = np.percentile(image, 1)
  p99 = np.percentile(image, 99)
  logger.debug(f"{prefix} stats: min={minv:.3f}, max={maxv:.3f}, mean={mean:.3f},"
               f" stddev={stddev:.3f}, p01={p01:.3f}, p99={p99:.3f}")


def balance_color_image(image, work_dir, method=DEFAULT_METHOD, clip_mode=DEFAULT_CLIP_MODE,
                        cliplow=DEFAULT_CLIP_LOW, cliphigh=None, neutral_gray=None):
  """Balances colors of an image toward the neutral gray and stretches its contrast.

  Every stage reads its input from an intermediate file in the work directory and
  writes its output back there, so the returned image is the last combined result.
  """
  assert image.dtype == np.float32
  if cliphigh is None:
    cliphigh = cliplow
  work_path = save_intermediate(work_dir, "work", image)
  lum_path = save_intermediate(work_dir, "luminance",
                               convert_luminance(load_intermediate(work_path)))
  channel_paths = [save_intermediate(work_dir, name, channel) for name, channel in
                   zip(CHANNEL_NAMES, separate_channels(load_intermediate(work_path)))]
  means = [compute_mean_percent(load_intermediate(path)) for path in channel_paths]
  lum_mean = compute_mean_percent(load_intermediate(lum_path))
  logger.debug(f"means: R={means[0]:.3f}, G={means[1]:.3f}, B={means[2]:.3f},"
               f" luminance={lum_mean:.3f}")
  if neutral_gray is None:
    neutral_gray = lum_mean
  logger.debug(f"neutral gray={neutral_gray:.3f}")
  if method == "gamma":
    logger.info(f"Applying gamma correction")
    for name, path, mean in zip(CHANNEL_NAMES, channel_paths, means):
      gamma = compute_gamma_value(mean, neutral_gray)
      logger.debug(f"{name} gamma={gamma:.4f}")
      save_intermediate(work_dir, name, apply_gamma_image(load_intermediate(path), gamma))
  elif method == "recolor":
    logger.info(f"Applying recolor correction")
    ratios = [compute_recolor_ratio(mean, neutral_gray) for mean in means]
    logger.debug(f"ratios: R={ratios[0]:.4f}, G={ratios[1]:.4f}, B={ratios[2]:.4f}")
    save_intermediate(work_dir, "work", apply_recolor_image(load_intermediate(work_path), ratios))
    channel_paths = [save_intermediate(work_dir, name, channel) for name, channel in
                     zip(CHANNEL_NAMES, separate_channels(load_intermediate(work_path)))]
  elif method != "none":
    raise ValueError(f"Unknown method: {method}")
  if clip_mode == "separate":
    logger.info(f"Stretching contrast of each channel separately")
    for name, path in zip(CHANNEL_NAMES, channel_paths):
      save_intermediate(work_dir, name,
                        stretch_contrast_image(load_intermediate(path), cliplow, cliphigh))
  elif clip_mode != "together":
    raise ValueError(f"Unknown clip mode: {clip_mode}")
  combined = combine_channels(*[load_intermediate(path) for path in channel_paths])
  if clip_mode == "together":
    logger.info(f"Stretching contrast of the channels together")
    combined = stretch_contrast_image(combined, cliplow, cliphigh)
  work_path = save_intermediate(work_dir, "work", combined)
  return load_intermediate(work_path)


def balance_color_file(input_path, output_path, work_dir, method=DEFAULT_METHOD,
                       clip_mode=DEFAULT_CLIP_MODE, cliplow=DEFAULT_CLIP_LOW,
                       cliphigh=None, neutral_gray=None):
  """Balances colors of an image file and saves the result."""
  logger.info(f"Loading the input file")
  meta = get_metadata(input_path)
  image, bits, icc_name, icc_data = load_image(input_path, meta)
  if logger.isEnabledFor(logging.DEBUG):
    log_image_stats(image, "input")
  image = balance_color_image(image, work_dir, method, clip_mode, cliplow, cliphigh,
                              neutral_gray)
  if logger.isEnabledFor(logging.DEBUG):
    log_image_stats(image, "output")
  if not icc_data and icc_name != "srgb":
    icc_data = load_icc_data(icc_name)
  logger.info(f"Saving the output file")
  save_image(output_path, image, bits, icc_data)
  copy_metadata(input_path, output_path)


def parse_method_expression(expr):
  """Parses a correction method name."""
  name = expr.strip().lower()
  if name in ["gamma", "g"]:
    return "gamma"
  if name in ["recolor", "r"]:
    return "recolor"
  if name in ["none", "n"]:
    return "none"
  raise ValueError(f"invalid method '{expr}': choose one of {', '.join(METHODS)}")


def parse_clip_mode_expression(expr):
  """Parses a clip mode name."""
  name = expr.strip().lower()
  if name in ["together", "t"]:
    return "together"
  if name in ["separate", "s"]:
    return "separate"
  raise ValueError(f"invalid clipmode '{expr}': choose one of {', '.join(CLIP_MODES)}")


def parse_percent(text, name):
  """Parses a non-negative float percentage between 0 and 100."""
  value = text.strip()
  if not re.fullmatch(r"(\d+\.?\d*|\.\d+)", value):
    raise ValueError(f"invalid {name} '{text}': must be a non-negative float")
  value = float(value)
  if value > 100:
    raise ValueError(f"invalid {name} '{text}': must be between 0 and 100")
  return value


def check_input_file(path):
  """Checks that the input file exists and is readable and not empty."""
  if not os.path.exists(path):
    raise ValueError(f"{path} doesn't exist")
  if not os.path.isfile(path) or not os.access(path, os.R_OK):
    raise ValueError(f"{path} is not readable")
  if os.path.getsize(path) == 0:
    raise ValueError(f"{path} is empty")


def check_output_file(path):
  """Checks that the output file has a supported image format."""
  ext = os.path.splitext(path)[1].lower()
  if ext not in EXTS_IMAGE:
    raise ValueError(f"Unsupported file format: {ext or path}")


def set_logging_level(level):
  """Sets the logging level."""
  logger.setLevel(level)


class UsageArgumentParser(argparse.ArgumentParser):
  """Argument parser which reports errors with the usage and the exit status 1."""

  def error(self, message):
    self.print_usage(sys.stderr)
    self.exit(1, f"{self.prog}: error: {message}\n")


def make_ap():
  """Makes the argument parser."""
  description = ("Balance colors automatically."
                 " Each channel mean is moved to the neutral gray and"
                 " the histogram is stretched to the full range.")
  version_msg = (f"{PROG_NAME} version {PROG_VERSION}."
            f" Powered by OpenCV2 {cv2.__version__} and NumPy {np.__version__}.")
  ap = UsageArgumentParser(
    prog=PROG_NAME, description=description, epilog=version_msg,
    formatter_class=argparse.RawDescriptionHelpFormatter, allow_abbrev=False,
    add_help=False)
  ap.add_argument("-help", "--help", action="help",
                  help="show this help message and exit")
  ap.add_argument("--version", action='version', version=version_msg)
  ap.add_argument("infile", help="input image path")
  ap.add_argument("outfile", help="output image path")
  ap.add_argument("--method", "-m", default=DEFAULT_METHOD, metavar="name",
                  help="choose a correction method of channel means:"
                  " gamma (default), recolor, none")
  ap.add_argument("--clipmode", "-c", default=DEFAULT_CLIP_MODE, metavar="name",
                  help="choose how to stretch contrast:"
                  " together (default), separate")
  ap.add_argument("--cliplow", "-l", default=str(DEFAULT_CLIP_LOW), metavar="num",
                  help="percent of pixels clipped to black (default=0.1)")
  ap.add_argument("--cliphigh", "-h", default=None, metavar="num",
                  help="percent of pixels clipped to white (default=cliplow)")
  ap.add_argument("--neutralgray", "-n", default=None, metavar="num",
                  help="percent of the neutral gray target (default=mean of luminance)")
  ap.add_argument("--debug", action='store_true', help="print debug messages")
  return ap


def abort_with_usage(ap, message):
  """Prints an error message and the usage, then exits with the status 1."""
  logger.error(f"{PROG_NAME}: error: {message}")
  ap.print_usage(sys.stderr)
  sys.exit(1)


def main():
  """Executes all operations."""
  ap = make_ap()
  args = ap.parse_args()
  start_time = time.time()
  if args.debug:
    set_logging_level(logging.DEBUG)
  logger.debug(f"{PROG_NAME}={PROG_VERSION},"
               f" OpenCV={cv2.__version__}, NumPy={np.__version__}")
  try:
    method = parse_method_expression(args.method)
    clip_mode = parse_clip_mode_expression(args.clipmode)
    cliplow = parse_percent(args.cliplow, "cliplow")
    cliphigh = (parse_percent(args.cliphigh, "cliphigh")
                if args.cliphigh is not None else cliplow)
    neutral_gray = (parse_percent(args.neutralgray, "neutralgray")
                    if args.neutralgray is not None else None)
    check_input_file(args.infile)
    check_output_file(args.outfile)
  except ValueError as e:
    abort_with_usage(ap, str(e))
  logger.info(f"Process started: input={args.infile}, output={args.outfile}")
  logger.debug(f"method={method}, clipmode={clip_mode}, cliplow={cliplow},"
               f" cliphigh={cliphigh}, neutralgray={neutral_gray}")
  try:
    with make_work_dir() as work_dir:
      balance_color_file(args.infile, args.outfile, work_dir, method, clip_mode,
                         cliplow, cliphigh, neutral_gray)
  except (ValueError, OSError, subprocess.SubprocessError, cv2.error) as e:
    abort_with_usage(ap, str(e))
  elapsed_time = time.time() - start_time
  logger.info(f"Process done: time={elapsed_time:.2f}s")


if __name__ == "__main__":
  main()


# END OF FILE
