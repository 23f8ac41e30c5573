"""Pixel buffers, bitmaps, text rendering and bus protocols for LED dot matrices, MAX7219 modules and 1-Wire devices."""

__version__ = "0.1.0"