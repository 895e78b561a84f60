import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="extpoints",
    version="0.1.0",
    author="wangguanran",
    author_email="elvans.wang@gmail.com",
    description="In-process extension points with ordered, filterable dispatch.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
    install_requires=[
        'configupdater',
        'toml',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
