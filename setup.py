from setuptools import setup

setup(
    name="phamlc",
    version="0.1.0",
    author="Varun Bhatnagar",
    author_email="bhatnagarvarun2020@gmail.com",
    description="Haml compiler that emits HTML with embedded PHP, with a watch-and-compile CLI",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=['phamlc'],
    python_requires=">=3.8",
    install_requires=[
        "watchdog",
        "pyyaml"
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["phamlc=phamlc.__main__:main"],
    },
)
