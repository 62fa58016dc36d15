"""Review domain - provider ratings"""
