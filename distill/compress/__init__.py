"""Namespace for context compression; it currently provides no compressors."""