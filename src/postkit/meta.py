"""Package metadata for postkit."""

__app_name__ = "postkit"
__version__ = "0.3.0"
__description__ = "Fluent email builder with a one-shot MIME build step and SMTP delivery."
__author__ = "postkit contributors"
__email__ = "maintainers@postkit.dev"
__url__ = "https://github.com/postkit/postkit"
__license_type__ = "MIT"

__all__ = [
    "__app_name__",
    "__author__",
    "__description__",
    "__email__",
    "__license_type__",
    "__url__",
    "__version__",
]
