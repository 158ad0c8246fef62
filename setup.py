"""Install rangetiff."""

from setuptools import find_packages, setup

# get version number
# from https://github.com/mapbox/rasterio/blob/master/setup.py#L55
with open("rangetiff/__init__.py") as f:
    for line in f:
        if line.find("__version__") >= 0:
            version = line.split("=")[1].strip().strip('"').strip("'")
            break

# use README.rst for project long_description
with open("README.rst") as f:
    readme = f.read()


# dependencies for extra features
install_requires = [
    "affine<3",
    "aiohttp",
    "cachetools",
    "click>=8",
    "click-plugins",
    "fsspec",
    "numpy>=1.22",
    "pydantic>=2",
    "pydantic-settings",
    "retry",
    "tqdm",
]
req_http = ["fsspec[http]", "aiohttp", "requests"]
req_s3 = ["boto3", "fsspec[s3]", "s3fs>=0.5.1"]
req_complete = req_http + req_s3
req_test = ["pytest", "pytest-cov", "rasterio>=1.3"]

setup(
    name="rangetiff",
    version=version,
    description="Windowed reading of tiled and striped GeoTIFFs using byte range requests",
    long_description=readme,
    long_description_content_type="text/x-rst",
    license="MIT",
    packages=find_packages(exclude=["test", "test.*"]),
    entry_points={
        "console_scripts": ["rangetiff=rangetiff.cli.main:main"],
        "rangetiff.cli.commands": [
            "info=rangetiff.cli.default.info:info",
            "read=rangetiff.cli.default.read:read",
            "windows=rangetiff.cli.default.windows:windows",
        ],
    },
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require={
        "complete": req_complete,
        "http": req_http,
        "s3": req_s3,
        "test": req_test,
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: GIS",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
