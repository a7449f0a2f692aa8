from lenticular.export.tiff import TiffEncodingError, encode_tiff

__all__ = ["TiffEncodingError", "encode_tiff"]
