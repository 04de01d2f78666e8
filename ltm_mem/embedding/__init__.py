# ltm_mem/embedding/__init__.py

from .hash_embedder import Embedder, HashEmbedder

__all__ = ["Embedder", "HashEmbedder"]
