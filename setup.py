"""
Setup configuration for PyRoomba (Roomba Open Interface over serial).

It can be installed via:
    - pip install .
    - pip install -e .[dev]  (for development)
    - pip install .[rpi]     (on the Raspberry Pi, for the wake pin)
"""

from setuptools import setup, find_packages

package_name = 'pyroomba'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['test', 'tests']),

    install_requires=[
        'setuptools',
        'pyserial>=3.5',
        'fastapi>=0.100',
        'uvicorn>=0.22',
    ],

    extras_require={
        'rpi': [
            'RPi.GPIO>=0.7',
        ],
        'dev': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
            'httpx',
        ],
    },

    zip_safe=True,

    description='Python library and HTTP service for iRobot Roomba robots (serial Open Interface)',
    long_description=open('README.md').read() if __import__('os').path.exists('README.md') else '',
    long_description_content_type='text/markdown',
    license='MIT',

    tests_require=['pytest'],

    entry_points={
        'console_scripts': [
            'pyroomba-server = pyroomba.server:main',
        ],
    },

    python_requires='>=3.8',

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Topic :: Scientific/Engineering :: Robotics',
    ],
)
