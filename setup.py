"""Setup configuration for ai_pr_report"""

from setuptools import setup, find_packages

setup(
    name="github-ai-pr-report",
    version="0.1.0",
    description=(
        "CLI tool exporting GitHub pull requests with AI utilization labels "
        "and lead times to CSV, with a companion analysis report."
    ),
    author="GitHub AI PR Report Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "python-dotenv>=1.0.0",
        "tzdata>=2023.3",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "ai-pr-report=ai_pr_report.main:main",
        ],
    },
)
