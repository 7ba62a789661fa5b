from setuptools import setup, find_packages

setup(
    name='openai-cli',
    version='0.1.0',
    description='A command-line tool and asynchronous client for the OpenAI API: chat, vision, images and audio.',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    install_requires=[
        'aiohttp>=3.9',
        'certifi',
        'pydantic>=2.0',
        'Pillow>=10.0',
        'python-dotenv>=1.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
        ],
    },
    entry_points={
        'console_scripts': [
            'openai-cli=openaicli.cli:main',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Intended Audience :: Developers',
        'Environment :: Console',
    ],
    python_requires='>=3.9',
    license='MIT',
    keywords='openai cli chat dall-e whisper tts',
)
