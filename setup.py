"""
SheathPIC: 1D-1V Electrostatic Plasma Sheath Simulation

Particle-in-Cell simulation of sheath formation at absorbing walls.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="sheathpic",
    version="0.1.0",
    description="1D-1V electrostatic PIC simulation of plasma sheath formation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Physics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "numba>=0.58.0",
        "matplotlib>=3.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "scipy>=1.11.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },
)
