#!/usr/bin/env python
from setuptools import setup
import os


def get_version():
    curdir = os.path.dirname(__file__)
    filename = os.path.join(curdir, 'src', 'svgpix', 'version.py')
    with open(filename, 'rb') as fp:
        return fp.read().decode('utf8').split('=')[1].strip(" \n'")


def readme():
    with open(os.path.join(os.path.dirname(__file__), 'README.rst')) as f:
        return f.read()


setup(
    name='svgpix',
    version=get_version(),
    description='Render SVG documents to RGBA pixel buffers with resvg',
    long_description=readme(),
    long_description_content_type='text/x-rst',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Multimedia :: Graphics',
        'Topic :: Multimedia :: Graphics :: Graphics Conversion',
    ],
    keywords='svg resvg rasterize render',
    license='MIT License',
    package_dir={'': 'src'},
    packages=[
        'svgpix',
        'svgpix.engine',
        'svgpix.utils',
    ],
    python_requires='>=3.10',
    install_requires=[
        'pillow>=10.1',
        'numpy',
        'resvg-py',
    ],
    extras_require={
        'test': [
            'pytest'],
    },
    include_package_data=True,
)
