"""
Setup file.
"""

from setuptools import setup

KEYWORDS = "assembler linker assembly build toolchain executable gnu-as"


if __name__ == "__main__":
    setup(
        keywords=KEYWORDS,
        include_package_data=True)
