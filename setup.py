from setuptools import setup, find_namespace_packages

setup(
    name="questionnaire-editor",
    version="0.1.0",
    description="Document model, XML codec and editing engine for bar-association questionnaires",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["questionnaire_editor*"]),
    install_requires=[
        "pydantic>=2.0.0",
        "lxml>=4.9",
        "networkx>=3.0",
        "matplotlib>=3.4.3",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.9",
)
