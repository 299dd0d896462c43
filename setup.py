from setuptools import setup, find_packages


setup(
    name='torch_pcg',
    version='0.1.0',
    packages=find_packages(include=['torch_pcg', 'torch_pcg.*']),
    install_requires=[
        'torch>=1.13.0',
        'numpy'
    ],
    extras_require={
        'scipy':['scipy'],
        'test':['pytest','scipy'],
        'docs':['sphinx','furo']
    }
)
