from .annotations import AnnotationParser, AnnotationTransformer

__all__ = ["AnnotationParser", "AnnotationTransformer"]
