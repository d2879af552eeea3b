from importlib import metadata

try:
    JSONFOUNDRY_VERSION = metadata.version("jsonfoundry")
except metadata.PackageNotFoundError:
    # Local run without installation
    JSONFOUNDRY_VERSION = "dev"
