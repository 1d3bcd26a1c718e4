"""
Setup configuration for Circuit Narrator.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="circuit-narrator",
    version="0.1.0",
    author="Circuit Narrator Team",
    description="Identify electronic components from photos and narrate them with local AI models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.7.0",
        "Pillow>=9.0.0",
        "transformers>=4.30.0",
        "huggingface_hub>=0.16.0",
        "tqdm>=4.62.0",
        "torch>=2.0.0",
        "flask>=2.2.0",
        "flask-cors>=3.0.10",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
            "black>=22.0.0",
            "flake8>=4.0.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "circuit-narrator=circuit_narrator.main:main",
        ],
    },
)
