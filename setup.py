"""
Setup script for probsketch.
"""

from setuptools import setup, find_packages

setup(
    name="probsketch",
    version="0.1.0",
    description="Bloom filter and HyperLogLog sketches for data streams",
    packages=find_packages(include=["probsketch", "probsketch.*"]),
    package_data={"probsketch": ["py.typed"]},
    python_requires=">=3.8",
    extras_require={"test": ["pytest"]},
)
