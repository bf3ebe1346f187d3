"""
Setup file.
"""

from setuptools import find_packages, setup

KEYWORDS = "build compiler plugins linker packages source-processor link-cache"


if __name__ == "__main__":
    setup(
        name="plugbuild",
        version="0.1.0",
        description="Compile and link core of a plugin-driven package build",
        keywords=KEYWORDS,
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=[
            "psutil",
        ],
        extras_require={
            "test": [
                "pytest",
            ],
        },
        include_package_data=True)
