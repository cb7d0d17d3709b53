from studysync.adapters.generation.caching import CachingContentGenerator, ContentGenerator

__all__ = ["CachingContentGenerator", "ContentGenerator"]
