"""
Script DSL Demo

Builds a pay-to-pubkey-hash locking script and a 2-of-2 multisig script
from the DSL, with hashes and keys supplied through escapes.
"""
import sys
sys.path.insert(0, '.')
from script_api import Context, PublicKey, bitcoin_script

KEY_A = PublicKey.from_hex("02" + "11" * 32)
KEY_B = PublicKey.from_hex("03" + "22" * 32)


def main():
    print('=== Script DSL Demo ===')
    print()

    ctx = Context()
    p2pkh = ctx.compile('''
        OP_DUP OP_HASH160 <pubkey_hash> OP_EQUALVERIFY OP_CHECKSIG
    ''')
    print('[1] Compiled P2PKH template')
    print(f'    {p2pkh.source_code}')

    script = p2pkh.evaluate(pubkey_hash=bytes(range(20)))
    print(f'[2] Locking script: {script.asm()}')

    multisig = bitcoin_script('''
        2 <KEY_A> <KEY_B> 2 OP_CHECKMULTISIG
    ''')
    print(f'[3] Multisig script ({len(multisig)} bytes): {multisig.to_hex()}')

    assert script.to_bytes()[:3] == bytes([0x76, 0xa9, 0x14])
    assert len(multisig) == 1 + 34 + 34 + 1 + 1

    print()
    print('SUCCESS! Both scripts built.')


if __name__ == '__main__':
    main()
