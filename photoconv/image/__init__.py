"""Image decoding, orientation and encoding."""
