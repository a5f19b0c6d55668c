"""seq2gif: normalize numbered image sequences and encode them to GIF with ffmpeg."""

__version__ = "0.3.0"
