"""Extraction pipeline: tokenizer, table extractor, classifier and converter."""
