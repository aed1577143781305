# Based on:
# https://betterscientificsoftware.github.io/
# python-for-hpc/tutorials/python-pypi-packaging/

from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="hybridizer",
    version="0.1.0",
    description="Mixed-triggered static hybridization of nonlinear hybrid automata",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GPLv3",
    packages=["hybridizer"],
    install_requires=[
        "pytest",
        "numpy",
        "scipy",
        "sympy",
        "mpmath",
        "termcolor",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering"
    ],
)
