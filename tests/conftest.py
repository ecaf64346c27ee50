"""Pytest configuration and fixtures."""


import pytest

from core.models import Ecosystem

SAMPLE_MANIFESTS = {
    Ecosystem.JAVA: """
<project>
  <dependencies>
    <dependency>
      <groupId>org.springframework</groupId>
      <artifactId>spring-core</artifactId>
      <version>5.3.0</version>
    </dependency>
    <dependency>
      <groupId>junit</groupId>
      <artifactId>junit</artifactId>
      <version>4.12</version>
    </dependency>
  </dependencies>
</project>
""",
    Ecosystem.DOTNET: """
<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <PackageReference Include="Newtonsoft.Json" Version="12.0.1" />
    <PackageReference Include="Serilog" Version="2.10.0" />
  </ItemGroup>
</Project>
""",
    Ecosystem.FLUTTER: """
name: my_app
dependencies:
  flutter:
    sdk: flutter
  http: ^0.13.0
  provider: ^6.0.0
""",
    Ecosystem.RUBY: """
source 'https://rubygems.org'

gem 'rails', '~> 6.1.0'
gem "puma", "~> 5.0"
""",
    Ecosystem.RUST: """[dependencies]
serde = "1.0"
tokio = { version = "1", features = ["full"] }
""",
    Ecosystem.NODE: """
{
  "name": "test-project",
  "dependencies": {
    "express": "^4.18.0",
    "lodash": "~4.17.21"
  },
  "devDependencies": {
    "jest": "^27.0.0"
  }
}
""",
    Ecosystem.PHP: """
{
  "require": {
    "monolog/monolog": "^2.0",
    "guzzlehttp/guzzle": "^7.0"
  },
  "require-dev": {
    "phpunit/phpunit": "^9.5"
  }
}
""",
    Ecosystem.R: """
install.packages("dplyr")
install.packages("ggplot2")
""",
    Ecosystem.GO: """module example.com/app

go 1.21

require (
    github.com/gin-gonic/gin v1.9.0
)

import "github.com/gin-gonic/gin"
""",
    Ecosystem.PYTHON: "fastapi==0.85.0\nrequests==2.28.0",
}


@pytest.fixture
def sample_manifests():
    """One valid manifest per supported ecosystem."""
    return dict(SAMPLE_MANIFESTS)


@pytest.fixture
def sample_requirements():
    """Sample requirements.txt content for testing."""
    return SAMPLE_MANIFESTS[Ecosystem.PYTHON]


@pytest.fixture
def sample_package_json():
    """Sample package.json content for testing."""
    return SAMPLE_MANIFESTS[Ecosystem.NODE]


@pytest.fixture
def temp_manifest_file(tmp_path):
    """Create a temporary manifest file for testing."""
    manifest = tmp_path / "Cargo.toml"
    manifest.write_text('[dependencies]\nserde = "1.0"\n')
    return manifest
