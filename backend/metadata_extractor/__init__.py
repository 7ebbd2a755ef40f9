"""Document asset metadata extractor"""
