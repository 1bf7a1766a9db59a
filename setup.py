#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name="voip_sim",
    version="0.1.0",
    description="G.711/G.726 speech codecs and VoIP call quality simulator",
    author="VoIP Simulation Team",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    python_requires=">=3.7",
    install_requires=[
        "numpy>=1.19.0",
        "pyyaml>=5.1",
        "soundfile>=0.10.0",
        "jsonschema>=3.2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "pytest-cov>=2.10.0",
            "black>=20.8b1",
            "flake8>=3.8.0",
            "mypy>=0.782",
        ],
    },
    entry_points={
        "console_scripts": [
            "voip-sim=voip_sim.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Telecommunications Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Communications :: Internet Phone",
        "Topic :: Multimedia :: Sound/Audio",
    ],
)
