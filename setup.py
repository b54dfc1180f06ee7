"""
Setup script for StripeGrinder.

Installs the ``Grinder`` package: diagonal-band window extraction and
stripe labeling of Hi-C contact matrices for training data generation.

Usage:
    pip install -e .            # library
    pip install -e .[test]      # with test dependencies
"""

from setuptools import setup, find_packages

setup(
    name='StripeGrinder',
    version='2025.1',
    description='Labeled stripe training windows from Hi-C contact matrices',
    author='Dr. Venkata Rajesh Yella',
    license='MIT',
    packages=find_packages(include=['Grinder', 'Grinder.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'pandas',
        'cooler',
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=False,
)
