from setuptools import setup, find_packages
from xml_standoff import __version__

setup(
    name="xml_standoff",
    version=__version__,
    packages=find_packages(exclude=["test", "test.*"]),
    install_requires=[
        "lxml",
        "fs",
        "fs-s3fs",
        "natsort",
        "argcomplete",
        # fs imports pkg_resources
        "setuptools<81",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "xml-standoff=xml_standoff.cli:main",
        ],
    },
)
