from setuptools import setup


setup(name='kryeig',
      packages=['kryeig'],
      version='0.1.0',
      description='Restarted Krylov subspace methods for eigenvalue problems',
      long_description=open('README.md').read(),
      long_description_content_type="text/markdown",
      install_requires=['numpy>=1.17', 'scipy>=1.7'],
      extras_require={'test': ['pytest']},
      python_requires=">=3.8",
      classifiers=[
          'Development Status :: 4 - Beta',
          'Intended Audience :: Science/Research',
          'License :: OSI Approved :: MIT License',
          'Operating System :: OS Independent',
          'Programming Language :: Python',
          'Programming Language :: Python :: 3',
          'Topic :: Scientific/Engineering :: Mathematics'
          ],
      )
