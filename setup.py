from os import path

from setuptools import setup

this_dir = path.abspath(path.dirname(__file__))
with open(path.join(this_dir, "README.md"), encoding="utf8") as f:
    long_description = f.read()

setup(
    name="FastGroup",
    description="FastGroup - user/group membership service built on the Unit of Work pattern",
    long_description=long_description,
    long_description_content_type="text/markdown",
    version="0.1",
    license="MIT",
    packages=["fastgroup", "fastgroup.core", "fastgroup.test"],
    package_data={
        "fastgroup": ["py.typed"],
        "fastgroup.core": ["py.typed"],
        "fastgroup.test": ["py.typed"],
    },
    keywords=["fastgroup", "unit-of-work", "repository", "sqlalchemy", "fastapi"],
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "uvicorn",
        "sqlalchemy>=2.0",
        "pydantic>=2",
        "colorama",
        "tenacity",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
        "postgres": [
            "psycopg2-binary",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
    entry_points={
        "console_scripts": [
            "fastgroup = fastgroup.command:console_main",
        ]
    },
)
