"""ghpublisher - publish a document subset to GitHub repositories through pull requests."""

__version__ = "0.1.0"
