"""
Storage network access for the Irys arcade bot.

Submodules:
    data_item: ANS-104 data item encoding and Ethereum signing.
    irys: ``IrysUploader`` -- price quotes and uploads against a bundler node.
"""
