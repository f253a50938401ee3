from setuptools import setup, find_packages
import re

# Read version from gytax/__init__.py
with open('gytax/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='gytax',
    version=version,
    packages=find_packages(include=['gytax', 'gytax.*']),
    package_data={
        'gytax': ['tax_rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'gy-tax=gytax.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Guyana tax calculators: PAYE, NIS, VAT, corporate and withholding tax, with compliance tracking.',
    python_requires='>=3.10',
)
