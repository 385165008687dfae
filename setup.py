from setuptools import setup, find_packages

setup(
    name="boutique",
    version="0.1.0",
    packages=find_packages(include=["boutique", "boutique.*", "storefront", "storefront.*"]),
    include_package_data=True,
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14",
        "django-anymail>=10.0",
        "python-dotenv>=1.0",
        "stripe>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-django>=4.5",
        ],
    },
    author="Wayne",
    author_email="support@techwithwayne.com",
    description="Storefront backend for Django: JSON catalog, order ledger, Stripe Checkout and order emails.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://techwithwayne.com",
    license="MIT",
    classifiers=[
        "Framework :: Django",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License"
    ],
    python_requires='>=3.9',
)
