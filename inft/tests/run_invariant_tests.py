import logging
import sys

from inft.tests.harness.invariant_test_harness import InvariantTestHarness


def main():
    print("Running Invariant Tests (escrow conservation)...")
    logging.getLogger("inft.events").setLevel(logging.WARNING)
    harness = InvariantTestHarness(seed=1)

    try:
        harness.test_random_sequence(steps=500)

        # Re-init for next test to clear state
        harness.cleanup()
        harness = InvariantTestHarness(seed=2)

        harness.test_unlink_all_drains_escrow()

        harness.cleanup()
        harness = InvariantTestHarness(seed=3)

        harness.test_personality_reuse()

        print("\nALL INVARIANT TESTS PASSED")
    except Exception as e:
        print(f"\nTEST FAILED: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        harness.cleanup()


if __name__ == "__main__":
    main()
