from setuptools import setup, find_packages
from os import path, environ
import runpy


# Read the version without importing the package (and its dependencies).
leakprobe_version = runpy.run_path(
    path.join(path.dirname(path.abspath(__file__)), "leakprobe", "leakprobe_config.py")
)["leakprobe_version"]

# If we're testing packaging, build using a ".devN" suffix in the version number,
# so that we can upload new files (as testpypi/pypi don't allow re-uploading files with
# the same name as previously uploaded).
# Numbering scheme: https://www.python.org/dev/peps/pep-0440
dev_build = ('.dev' + environ['DEV_BUILD']) if 'DEV_BUILD' in environ else ''

setup(
    name="leakprobe",
    version=leakprobe_version + dev_build,
    description="Repeatedly runs a workload and decides whether it leaks memory",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "psutil",
        "pydantic>=2",
        "rich",
    ],
    extras_require={
        "test": [
            "hypothesis",
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "leakprobe = leakprobe.__main__:main",
        ],
    },
    include_package_data=True,
)
