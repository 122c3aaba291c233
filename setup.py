from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="ran-handover-engine",
    version="0.1.0",
    author="RADCOM Team",
    description="Handover decision engine for LTE RAN controllers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "additional*", "config*"]),
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "torch": [
            "torch>=2.0.0",
        ],
        "onnx": [
            "onnxruntime>=1.16.0",
        ],
        "joblib": [
            "joblib>=1.3.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ran-handover=handover_engine.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Telecommunications Industry",
        "Programming Language :: Python :: 3.11",
    ],
)
