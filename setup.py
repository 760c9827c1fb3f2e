#!/usr/bin/env python3

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

"""
Setup configuration for the capture_common package.

This shared library provides utilities for the capture Lambda functions:
- URL normalization and platform classification
- Scraper strategies with per-platform fallback chains
- Media rehosting to S3
- Bedrock categorization and search intent extraction
- DynamoDB capture records and SQS transport
"""

from setuptools import find_packages, setup

setup(
    name="capture_common",
    version="0.1.0",
    description="Shared utilities for the content capture Lambda functions",
    package_dir={"": "lib"},
    packages=find_packages(where="lib"),
    python_requires=">=3.11",
    install_requires=[
        "boto3>=1.34.0",
        "Pillow>=10.0.0",
        # Scraping dependencies
        "httpx>=0.27.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "moto[dynamodb,s3,sqs]>=5.0.0",
        ],
    },
    author="Development Team",
    license="MIT-0",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
