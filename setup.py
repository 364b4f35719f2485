"""osmparse setup script."""

from itertools import chain

from setuptools import setup

# version of the package
VERSION = "0.3.0"

# minimum required python version
PYTHON_REQUIRES = ">=3.9"

# optional dependency versions
extras = {
    "tests": ["pytest>=7"],
}
extras["all"] = sorted(set(chain(*extras.values())))
EXTRAS_REQUIRE = dict(sorted(extras.items()))

# list of classifiers from the PyPI classifiers trove
CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "License :: OSI Approved :: MIT License",
    "Operating System :: OS Independent",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Topic :: Scientific/Engineering :: GIS",
    "Topic :: Text Processing :: Markup :: XML",
]

# provide a short description of package
DESCRIPTION = "Parse OpenStreetMap XML into a typed model of nodes, ways, and relations"

# provide a long description using reStructuredText
LONG_DESCRIPTION = r"""
osmparse reads OpenStreetMap XML data incrementally and builds an in-memory
model of its bounds, nodes, ways, and relations. Malformed elements are
skipped without aborting the parse. Ways and relations refer to other
elements by ID and can be resolved against the model on demand, and each way
can be classified as an area or a line from its tags and shape.

The parsed model can be converted to pandas DataFrames or to a NetworkX
MultiDiGraph for further analysis.
"""

with open("requirements.txt") as f:
    INSTALL_REQUIRES = [line.strip() for line in f.readlines() if line.strip()]

# now call setup
setup(
    classifiers=CLASSIFIERS,
    description=DESCRIPTION,
    extras_require=EXTRAS_REQUIRE,
    install_requires=INSTALL_REQUIRES,
    license="MIT",
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/x-rst",
    name="osmparse",
    packages=["osmparse"],
    platforms="any",
    python_requires=PYTHON_REQUIRES,
    version=VERSION,
)
