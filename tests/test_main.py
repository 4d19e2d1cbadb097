"""
Tests for the command line entry point.
"""

import pytest
import json
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from smartseg.__main__ import main
from smartseg.components.config import ConfigManager


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    for name in ('SMARTSEG_K', 'SMARTSEG_FEATURES', 'SMARTSEG_SEED', 'SMARTSEG_SAMPLE_ROWS', 'LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


class TestMain:
    """Tests for the main function."""
    
    def test_sample_run(self, tmp_path, capsys):
        """A sample run writes both CSV files and prints a JSON summary."""
        labeled_path = str(tmp_path / 'labeled.csv')
        profile_path = str(tmp_path / 'profiles.csv')
        
        code = main([
            '--sample', '90', '--seed', '3', '-k', '3',
            '--output', labeled_path, '--profile-output', profile_path
        ])
        
        assert code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary['k'] == 3
        assert summary['n_rows'] == 90
        assert summary['features'] == ['Recency', 'Frequency', 'Monetary']
        assert sum(summary['counts']) == 90
        
        labeled = pd.read_csv(labeled_path)
        assert len(labeled) == 90
        assert 'Segment' in labeled.columns
        assert labeled['Segment'].between(0, 2).all()
        
        profiles = pd.read_csv(profile_path)
        assert profiles['Count'].sum() == 90
    
    def test_input_file(self, tmp_path, capsys):
        """A CSV input is segmented on the requested features."""
        path = tmp_path / 'customers.csv'
        pd.DataFrame({
            'CustomerID': ['a', 'b', 'c', 'd', 'e', 'f'],
            'Recency': [0, 0, 1, 10, 10, 11],
            'Monetary': [0, 1, 0, 10, 11, 10]
        }).to_csv(path, index=False)
        
        code = main([
            '--input', str(path), '--features', 'Recency,Monetary', '-k', '2',
            '--seed', '1', '--id-column', 'CustomerID', '--rows'
        ])
        
        assert code == 0
        summary = json.loads(capsys.readouterr().out)
        labels = [entry['segment'] for entry in summary['labels']]
        assert [entry['id'] for entry in summary['labels']] == ['a', 'b', 'c', 'd', 'e', 'f']
        assert labels[0] == labels[1] == labels[2]
        assert labels[3] == labels[4] == labels[5]
        assert labels[0] != labels[3]
    
    def test_invalid_k(self, capsys):
        """Asking for more segments than rows exits with status 2."""
        code = main(['--sample', '5', '--seed', '0', '-k', '6'])
        
        assert code == 2
        assert capsys.readouterr().out == ''
    
    def test_invalid_config(self, tmp_path):
        """A bad configuration file exits with status 2."""
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps({'segmentation': {'max-iters': 0}}))
        
        assert main(['--sample', '10', '--config', str(path)]) == 2
    
    def test_zero_sample_rows(self, capsys):
        """A zero-row sample gives an empty summary."""
        code = main(['--sample', '0', '--seed', '1'])
        
        assert code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary['n_rows'] == 0
        assert summary['counts'] == []
        assert summary['profiles'] == []
    
    def test_sample_rows_from_config(self, capsys):
        """A bare --sample uses the configured row count."""
        code = main(['--sample', '--seed', '2'])
        
        assert code == 0
        assert json.loads(capsys.readouterr().out)['n_rows'] == 400
    
    def test_negative_sample_rows(self):
        """A negative sample size is rejected by the parser."""
        with pytest.raises(SystemExit):
            main(['--sample', '-3'])
    
    def test_missing_input(self, tmp_path, capsys):
        """A missing CSV exits with status 2."""
        code = main(['--input', str(tmp_path / 'absent.csv')])
        
        assert code == 2
        assert capsys.readouterr().out == ''
    
    def test_empty_input(self, tmp_path, capsys):
        """A CSV without a header exits with status 2."""
        path = tmp_path / 'empty.csv'
        path.write_text('')
        
        assert main(['--input', str(path)]) == 2
        assert capsys.readouterr().out == ''
