"""
Retro sound effects for Centipede.

Every effect is synthesised at start-up from square/sawtooth/triangle
waves with numpy and played through the pygame mixer. Without an audio
device the synth stays silent.
"""

import os
import sys

import numpy as np
from loguru import logger

# Suppress pygame welcome message
os.environ['PYGAME_HIDE_SUPPORT_PROMPT'] = '1'

# Keep SDL from asking for microphone access on macOS
if sys.platform == 'darwin':
    os.environ['SDL_AUDIODRIVER'] = 'coreaudio'
    os.environ['SDL_AUDIO_DEVICE_ADD_CAPTURE'] = '0'

import pygame


class RetroSynth:
    """Retro-style software synthesizer for 8-bit game sounds"""

    def __init__(self, enabled: bool = True):
        self.sample_rate = 22050
        self.sounds = {}
        self.enabled = False
        if not enabled:
            return
        try:
            pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=2, buffer=512)
        except pygame.error as e:
            logger.warning(f"Audio unavailable, playing silently: {e}")
            return
        self.enabled = True
        self._generate_sounds()

    def _generate_square_wave(self, frequency: float, duration: float, volume: float = 0.3) -> np.ndarray:
        """Generate a square wave (classic 8-bit sound)"""
        t = np.linspace(0, duration, int(self.sample_rate * duration))
        return volume * np.sign(np.sin(2 * np.pi * frequency * t))

    def _generate_triangle_wave(self, frequency: float, duration: float, volume: float = 0.3) -> np.ndarray:
        t = np.linspace(0, duration, int(self.sample_rate * duration))
        return volume * 2 * np.abs(2 * ((frequency * t) % 1) - 1) - volume

    def _generate_sawtooth_wave(self, frequency: float, duration: float, volume: float = 0.3) -> np.ndarray:
        t = np.linspace(0, duration, int(self.sample_rate * duration))
        return volume * 2 * ((frequency * t) % 1) - volume

    def _apply_lowpass_filter(self, wave: np.ndarray, cutoff_freq: float = 2000) -> np.ndarray:
        """Moving-average lowpass to soften harsh edges"""
        window_size = max(1, int(self.sample_rate / cutoff_freq))
        kernel = np.ones(window_size) / window_size
        return np.convolve(wave, kernel, mode='same')

    def _apply_envelope(self, wave: np.ndarray, attack: float = 0.01, decay: float = 0.1) -> np.ndarray:
        """Linear attack and decay ramps"""
        length = len(wave)
        attack_samples = int(attack * self.sample_rate)
        decay_samples = int(decay * self.sample_rate)

        envelope = np.ones(length)
        if 0 < attack_samples < length:
            envelope[:attack_samples] = np.linspace(0, 1, attack_samples)
        if 0 < decay_samples < length:
            envelope[-decay_samples:] = np.linspace(1, 0, decay_samples)
        return wave * envelope

    def _make_sound(self, wave: np.ndarray) -> pygame.mixer.Sound:
        """Convert numpy array to pygame Sound object"""
        wave = np.clip(wave * 32767, -32767, 32767).astype(np.int16)
        stereo = np.ascontiguousarray(np.column_stack((wave, wave)))
        return pygame.mixer.Sound(stereo)

    def _sweep(self, start_freq: float, end_freq: float, duration: float, volume: float) -> np.ndarray:
        """Sawtooth with a linear pitch sweep"""
        t = np.linspace(0, duration, int(self.sample_rate * duration))
        freq = start_freq + (end_freq - start_freq) * t / duration
        return volume * 2 * ((freq * t) % 1) - volume

    def _generate_sounds(self):
        """Generate all game sound effects"""

        # Shoot - short bright zap
        shoot = self._sweep(1200, 800, 0.04, 0.2)
        shoot = self._apply_lowpass_filter(shoot, 4000)
        self.sounds['shoot'] = self._make_sound(self._apply_envelope(shoot, 0.0005, 0.02))

        # Explosion - falling sweep buried in noise
        explosion = self._sweep(800, 200, 0.18, 0.2)
        explosion = explosion + np.random.uniform(-0.1, 0.1, len(explosion))
        explosion = self._apply_lowpass_filter(explosion, 3500)
        self.sounds['explosion'] = self._make_sound(self._apply_envelope(explosion, 0.005, 0.1))

        # Head hit - explosion with a square-wave chirp on top
        chirp = np.concatenate([
            self._generate_square_wave(880, 0.05, 0.15),
            self._generate_square_wave(1320, 0.05, 0.15),
        ])
        head = np.zeros(max(len(explosion), len(chirp)))
        head[:len(explosion)] += explosion
        head[:len(chirp)] += chirp
        self.sounds['head_hit'] = self._make_sound(self._apply_envelope(head, 0.002, 0.08))

        # Fly hit - high triangle warble
        fly = np.concatenate([
            self._generate_triangle_wave(1046, 0.05, 0.2),
            self._generate_triangle_wave(1568, 0.05, 0.2),
            self._generate_triangle_wave(2093, 0.05, 0.2),
        ])
        self.sounds['fly_hit'] = self._make_sound(self._apply_envelope(fly, 0.002, 0.05))

        # Lose life - long descending square
        lose = np.concatenate([
            self._generate_square_wave(440, 0.12, 0.18),
            self._generate_square_wave(349, 0.12, 0.18),
            self._generate_square_wave(262, 0.24, 0.18),
        ])
        lose = self._apply_lowpass_filter(lose, 2500)
        self.sounds['lose_life'] = self._make_sound(self._apply_envelope(lose, 0.01, 0.15))

        # Level up - ascending arpeggio with bright sawtooth
        level_up = np.concatenate([
            self._generate_sawtooth_wave(523, 0.08, 0.14),  # C
            self._generate_sawtooth_wave(659, 0.08, 0.14),  # E
            self._generate_sawtooth_wave(784, 0.08, 0.14),  # G
            self._generate_sawtooth_wave(1046, 0.16, 0.14),  # C
        ])
        level_up = self._apply_lowpass_filter(level_up, 4000)
        self.sounds['level_up'] = self._make_sound(self._apply_envelope(level_up, 0.01, 0.1))

        # Bonus life - quick double blip
        blip = self._generate_square_wave(1318, 0.06, 0.15)
        bonus = np.concatenate([blip, np.zeros(int(self.sample_rate * 0.04)), blip])
        self.sounds['bonus_life'] = self._make_sound(self._apply_envelope(bonus, 0.002, 0.03))

        # Game over - slow sawtooth slide into the floor
        game_over = self._sweep(330, 55, 1.2, 0.2)
        game_over = self._apply_lowpass_filter(game_over, 1500)
        self.sounds['game_over'] = self._make_sound(self._apply_envelope(game_over, 0.02, 0.5))

    def play(self, sound_name: str):
        """Play a sound effect"""
        if self.enabled and sound_name in self.sounds:
            self.sounds[sound_name].play()

    def stop(self):
        if self.enabled:
            pygame.mixer.stop()
