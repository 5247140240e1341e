"""Pytest fixtures for swiftguard tests."""
from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    """Create a temporary .swiftguard.toml file."""
    config_path: Path = tmp_path / ".swiftguard.toml"
    config_path.write_text(
        """
include = ["Sources/**/*.swift"]
exclude = ["**/Generated/**"]
output_format = "structured"
show_source = false
jobs = 2
timeout = 2.5

[rules]
OPT002 = "error"
SWT002 = "off"
disabled = ["LOP003"]

[rules.PRP002]
severity = "error"
max_statements = 3

[rules.CLO002]
escaping_calls = ["sink", "onUpdate"]

[rules.PRT001]
allowed_inline = ["Codable"]

[ignores]
require_reason = false
disallow = ["OPT001"]
max_per_file = 10
"""
    )
    return config_path


@pytest.fixture
def empty_config(tmp_path: Path) -> Path:
    """Create an empty .swiftguard.toml file."""
    config_path: Path = tmp_path / ".swiftguard.toml"
    config_path.write_text("")
    return config_path


@pytest.fixture
def invalid_toml(tmp_path: Path) -> Path:
    """Create an invalid TOML file."""
    config_path: Path = tmp_path / ".swiftguard.toml"
    config_path.write_text("invalid [ toml content")
    return config_path


@pytest.fixture
def invalid_config(tmp_path: Path) -> Path:
    """Create a .swiftguard.toml with invalid values."""
    config_path: Path = tmp_path / ".swiftguard.toml"
    config_path.write_text(
        """
output_format = "xml"
jobs = 0

[rules]
OPT001 = "fatal"
FAKE001 = "warn"

[ignores]
disallow = ["NOPE01"]
"""
    )
    return config_path


@pytest.fixture
def preferred_source() -> str:
    """Swift source that follows every preferred pattern."""
    return '''\
import UIKit

protocol ListViewDelegate: AnyObject {
    func listView(_ listView: ListView, didSelect index: Int)
}

class ListView: UIView {
    @IBOutlet weak var titleLabel: UILabel!
    weak var delegate: ListViewDelegate?
    let rowHeight = 44
    var selectedIndex = 0 {
        didSet { selectionChanged() }
    }
    lazy var formatter: NumberFormatter = {
        let formatter = NumberFormatter()
        formatter.numberStyle = .decimal
        return formatter
    }()

    func select(_ index: Int) {
        selectedIndex = index
    }

    func selectionChanged() {
        guard let delegate = delegate else { return }
        delegate.listView(self, didSelect: selectedIndex)
    }

    func load(from api: API) {
        api.fetch(completion: { [weak self] items in
            self?.render(items)
        })
    }

    func render(_ items: [Item]) {
        let names = items.map { $0.name }
        for (index, name) in names.enumerated() {
            print(index, name)
        }
        for item in items where item.isVisible {
            show(item)
        }
        let total = items.reduce(0) { $0 + $1.count }
        switch total {
        case 0, 1:
            print("few")
        default:
            print("many")
        }
        if let first = items.first, let label = first.label {
            print(label)
        }
    }
}

extension ListView: UITableViewDataSource {}
'''
