# Replay a recorded accelerometer session (or a simulated walk) through the
# streaming step detector and plot the filtered signal against the threshold.
import argparse
from pathlib import Path

import matplotlib.pyplot as plt
import polars as pl

from step_streaming import AccelDataLoader, SimulatedSampleSource, StepDetector, UserProfile
from step_streaming.replay import compare_with_reference, replay_samples


parser = argparse.ArgumentParser(description="Replay accelerometer samples through the step detector")
parser.add_argument("recording", nargs="?", type=Path, help="Parquet or CSV recording (timestamp, x, y, z)")
parser.add_argument("--simulate", type=int, default=600, help="Samples to simulate when no recording is given")
parser.add_argument("--cadence", type=float, default=70.0, help="Simulated steps per minute")
parser.add_argument("--seed", type=int, default=0)
parser.add_argument("--save", type=str, help="Save the simulated samples as a session with this name")
parser.add_argument("--height", type=float, default=170.0)
parser.add_argument("--weight", type=float, default=70.0)
parser.add_argument("--no-plot", action="store_true")
args = parser.parse_args()

if args.recording:
    loader = AccelDataLoader(args.recording.parent)
    samples = loader.to_samples(loader.load_file(args.recording))
    print(f"Loaded {len(samples)} samples from {args.recording.name}")
else:
    source = SimulatedSampleSource(cadence=args.cadence, seed=args.seed)
    samples = source.generate_samples(args.simulate)
    print(f"Simulated {len(samples)} samples at {args.cadence:.0f} steps/min")
    if args.save:
        path = AccelDataLoader(Path("data/recordings")).save_session(samples, args.save)
        print(f"Saved to {path}")

detector = StepDetector(profile=UserProfile(weight_kg=args.weight, height_cm=args.height))
trace = replay_samples(samples, detector)
comparison = compare_with_reference(trace)
state = detector.get_state()

print("=" * 60)
print(f"Streaming steps:  {comparison['streaming_steps']}")
print(f"Reference steps:  {comparison['reference_steps']}")
print(f"Distance:         {state.distance_meters:.1f} m")
print(f"Calories:         {state.calories_burned:.1f} kcal")
print(f"Pace:             {state.pace_steps_per_minute:.1f} steps/min ({state.activity_type})")
print(f"Final threshold:  {detector.threshold:.3f}")
print(f"Final baseline:   {detector.baseline_acceleration:.3f}")
print("=" * 60)

if not args.no_plot:
    t = (trace['timestamp'] - trace['timestamp'][0]) / 1000
    steps = trace.filter(pl.col('is_step'))
    t_steps = (steps['timestamp'] - trace['timestamp'][0]) / 1000

    fig, axs = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    axs[0].plot(t, trace['magnitude'])
    axs[0].plot(t, trace['baseline'], linestyle='--')
    axs[0].set_title('Raw magnitude and baseline')
    axs[0].set_ylabel('m/s²')

    axs[1].plot(t, trace['smoothed'])
    axs[1].plot(t, trace['threshold'], linestyle='--')
    axs[1].scatter(t_steps, steps['smoothed'], color='black', s=12, zorder=3)
    axs[1].set_title('Smoothed high-pass magnitude, threshold and steps')
    axs[1].set_xlabel('Time (s)')
    axs[1].set_ylabel('m/s²')

    plt.tight_layout()
    plt.show()
