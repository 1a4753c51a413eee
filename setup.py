from setuptools import setup, find_packages


setup(
    name="cfl",
    version="0.1",
    packages=find_packages(include=["cfl", "cfl.*"]),
    description="Pack and unpack CFL3/DFL3 archives: named files stored as LZMA blocks behind a compressed trailer index.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "cfl=cfl.cli:main",
        ]
    },
)
