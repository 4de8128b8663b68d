"""
Org Authz
组织级权限判定引擎：角色矩阵、部门层级、成员变更审计
"""

from setuptools import setup, find_packages
import os

# 读取 README 文件
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Org Authz - 组织级权限判定引擎"

setup(
    name="org-authz",
    version="1.0.0",
    description="组织级权限判定引擎 - 角色矩阵、部门层级、成员变更审计",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["docs*", "examples*"]),
    include_package_data=True,
    package_data={
        "org_authz": [
            "management/**/*",
            "migrations/**/*",
        ],
    },
    classifiers=[
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Framework :: Django :: 5.0",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: System :: Systems Administration :: Authentication/Directory",
    ],
    keywords="django authorization organization department rbac audit",
    python_requires=">=3.8",
    install_requires=[
        "Django>=3.2",
        "djangorestframework>=3.14.0",
        "psycopg2-binary>=2.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-django>=4.5.0",
            "pytest-cov>=4.1.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "isort>=5.12.0",
            "factory-boy>=3.3.0",
        ],
    },
    entry_points={
        "django.apps": [
            "org_authz=org_authz.apps.OrgAuthzConfig",
        ],
    },
    zip_safe=False,
    platforms=["any"],
)
