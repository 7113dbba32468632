"""
Setup configuration for chiller_plant package.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / 'README.md'
long_description = readme_path.read_text() if readme_path.exists() else ''

setup(
    name='chiller_plant',
    version='1.0.0',
    description='Reformulated-EIR water-cooled chiller performance simulation',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Chiller Plant Team',
    author_email='team@chillerplant.example.com',

    packages=find_packages(exclude=['tests', 'tests.*', 'configs']),
    package_data={
        'chiller_plant.config': ['schemas/*.json'],
    },
    include_package_data=True,

    install_requires=[
        'numpy>=1.21.0',
        'numba>=0.55.0',
        'pyyaml>=6.0',
        'jsonschema>=4.0.0',
        'pydantic>=2.0',
    ],

    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=3.0.0',
            'mypy>=0.990',
            'black>=22.0.0',
            'flake8>=5.0.0',
        ],
    },

    entry_points={
        'console_scripts': [
            'chiller-simulate=chiller_plant.simulation.runner:main',
        ],
    },

    python_requires='>=3.10',

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
