from setuptools import setup, find_packages

setup(
    name="logshot",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        # Core dependencies
        "pillow",  # For decoding framebuffers and writing images
        "pydantic>=2.0.0",  # For settings validation
        "python-dotenv>=1.0.0",
        "PyYAML",  # For the settings file
        "requests",  # For HTTP uploads
    ],
    extras_require={
        "dev": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "logshot=logshot.cli:main",
        ],
    },
    description="Capture Android screenshots on demand, triggered by logcat marker lines",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
)
