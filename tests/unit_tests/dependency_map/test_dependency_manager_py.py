import unittest

import pytest

from impact_detector.analyzer.dependency_map.errors import ParseFailure
from impact_detector.analyzer.dependency_map.python.dependency_manager_py import DependencyManagerPy
from tests.unit_tests.helper import BaseTestCase


class TestDependencyManagerPy(BaseTestCase):
    def build(self, **kwargs):
        self.dm = DependencyManagerPy(self.repo_path, **kwargs)
        return self.dm.build()

    def test_absolute_imports(self):
        self.write_file("pkg/__init__.py")
        self.write_file("pkg/util.py", "VALUE = 1\n")
        self.write_file("pkg/service.py", "from pkg.util import VALUE\n")
        self.write_file("tests/test_service.py", "import pkg.service\n")
        graph = self.build()

        self.assertEqual(graph.dependents(self.abs_path("pkg/util.py")), {self.abs_path("pkg/service.py")})
        self.assertEqual(
            graph.dependents(self.abs_path("pkg/service.py")), {self.abs_path("tests/test_service.py")}
        )

    def test_from_package_import_submodule(self):
        self.write_file("pkg/__init__.py")
        self.write_file("pkg/util.py", "VALUE = 1\n")
        self.write_file("main.py", "from pkg import util\n")
        graph = self.build()
        self.assertEqual(graph.dependents(self.abs_path("pkg/util.py")), {self.abs_path("main.py")})
        self.assertEqual(graph.dependents(self.abs_path("pkg/__init__.py")), set())

    def test_relative_imports(self):
        self.write_file("pkg/__init__.py", "from .core import run\n")
        self.write_file("pkg/core.py", "def run():\n    pass\n")
        self.write_file("pkg/sub/__init__.py")
        self.write_file("pkg/sub/helper.py", "from .. import core\nfrom ..core import run\n")
        graph = self.build()

        self.assertEqual(
            graph.dependents(self.abs_path("pkg/core.py")),
            {self.abs_path("pkg/__init__.py"), self.abs_path("pkg/sub/helper.py")},
        )

    def test_src_layout(self):
        self.write_file("src/app/__init__.py")
        self.write_file("src/app/models.py", "class Model:\n    pass\n")
        self.write_file("tests/test_models.py", "from app.models import Model\n")
        graph = self.build()
        self.assertEqual(graph.dependents(self.abs_path("src/app/models.py")), {self.abs_path("tests/test_models.py")})

    def test_stdlib_and_third_party_are_unresolved(self):
        self.write_file("main.py", "import os\nfrom networkx import DiGraph\n")
        self.build()
        self.assertEqual({u.specifier for u in self.dm.unresolved}, {"os", "networkx.DiGraph"})

    def test_syntax_error(self):
        self.write_file("ok.py", "X = 1\n")
        self.write_file("broken.py", "def broken(:\n")
        self.build(strict=False)
        self.assertEqual(self.dm.parse_failures, [self.abs_path("broken.py")])

        with pytest.raises(ParseFailure):
            self.build(strict=True)


if __name__ == "__main__":
    unittest.main()
