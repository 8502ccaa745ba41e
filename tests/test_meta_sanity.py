import importlib

def test_core_modules_and_symbols_exist():
    mods = [
        ("common.settings", ["load_settings"]),
        ("common.errors", ["BridgeError", "BridgeErrorKind"]),
        ("ingestion.rpc", ["HttpTransport", "ScriptedTransport", "Transport"]),
        ("ingestion.finality", ["FinalityGate"]),
        ("ingestion.receipts", ["ReceiptMatcher"]),
        ("ingestion.fetcher", ["LogFetcher"]),
        ("bridge.client", ["EthClient"]),
    ]
    for mod_name, symbols in mods:
        mod = importlib.import_module(mod_name)
        for sym in symbols:
            assert hasattr(mod, sym), f"{mod_name} missing {sym}"
