"""Script text preprocessing: vendor-size chunking and language detection."""
