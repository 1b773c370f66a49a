"""Core translation layer: models, mapper, compiler and reconstructor."""
