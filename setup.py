from setuptools import setup
import os
import re

with open(os.path.join(os.path.dirname(__file__), "grfcore", "_version.py")) as file:
    for line in file:
        m = re.fullmatch("__version__ = '([^']+)'\n", line)
        if m:
            version = m.group(1)

# configuration is all pulled from setup.cfg
setup(zip_safe=False,
      version=version)
