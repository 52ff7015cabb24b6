"""Structured, levelled logging with stream, file, multi and asynchronous writers."""