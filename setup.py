import os
from setuptools import setup


def read(fname):
    try:
        with open(os.path.join(os.path.dirname(__file__), fname)) as f:
            return f.read()
    except IOError:
        return ""

setup(
    name="gmmfit",
    version="0.1.0",

    description="Expectation-Maximization (EM) fitting of one dimensional Gaussian mixtures with a multi-start search and a histogram based initial guess",
    long_description=read("README.rst"),

    license="MIT",
    keywords="numeric em expectation maximization gaussian mixture histogram statistics",

    packages=['gmmfit'],
    python_requires=">=3.8",

    install_requires=[
        "numpy>=1.17.0",
        "scipy>=1.3.0",
        "pandas>=1.0.0",
        "matplotlib>=3.1.0",
    ],

    extras_require={
        "test": ["pytest>=6.0"],
    },

    entry_points={
        "console_scripts": ["gmmfit=gmmfit.cli:run"],
    },

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License",

        "Intended Audience :: Science/Research",

        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
)
